"""Tests for Redis client module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisClientConnectionError

from insider_signals.core.exceptions import RedisConnectionError
from insider_signals.storage.redis import (
    close_redis,
    get_redis,
    init_redis,
)


class TestGetRedis:
    """Tests for get_redis function."""

    def test_not_initialized(self) -> None:
        """Test get_redis raises if not initialized."""
        import insider_signals.storage.redis as redis_module

        redis_module._redis = None

        with pytest.raises(RuntimeError, match="not initialized"):
            get_redis()

    def test_returns_instance(self) -> None:
        """Test get_redis returns the instance."""
        import insider_signals.storage.redis as redis_module

        mock_redis = MagicMock()
        redis_module._redis = mock_redis

        result = get_redis()

        assert result is mock_redis

        # Cleanup
        redis_module._redis = None


class TestInitRedis:
    """Tests for init_redis function."""

    @pytest.mark.anyio
    async def test_init_creates_client(self) -> None:
        """Test init_redis creates Redis client."""
        import insider_signals.storage.redis as redis_module

        mock_redis = MagicMock()
        mock_redis.ping = AsyncMock(return_value=True)

        with patch("insider_signals.storage.redis.Redis") as mock_redis_cls:
            mock_redis_cls.from_url.return_value = mock_redis

            result = await init_redis("redis://localhost:6379")

        assert result is mock_redis
        assert redis_module._redis is mock_redis
        mock_redis_cls.from_url.assert_called_once_with(
            "redis://localhost:6379",
            decode_responses=False,
        )
        mock_redis.ping.assert_called_once()

        # Cleanup
        redis_module._redis = None

    @pytest.mark.anyio
    async def test_init_ping_failure(self) -> None:
        """Test init_redis wraps connection failures and closes the client."""
        import insider_signals.storage.redis as redis_module

        redis_module._redis = None
        mock_redis = MagicMock()
        mock_redis.ping = AsyncMock(side_effect=RedisClientConnectionError("refused"))
        mock_redis.aclose = AsyncMock()

        with patch("insider_signals.storage.redis.Redis") as mock_redis_cls:
            mock_redis_cls.from_url.return_value = mock_redis

            with pytest.raises(RedisConnectionError, match="refused"):
                await init_redis("redis://localhost:6379")

        mock_redis.aclose.assert_called_once()
        assert redis_module._redis is None


class TestCloseRedis:
    """Tests for close_redis function."""

    @pytest.mark.anyio
    async def test_close_when_initialized(self) -> None:
        """Test close_redis closes the client."""
        import insider_signals.storage.redis as redis_module

        mock_redis = MagicMock()
        mock_redis.aclose = AsyncMock()
        redis_module._redis = mock_redis

        await close_redis()

        mock_redis.aclose.assert_called_once()
        assert redis_module._redis is None

    @pytest.mark.anyio
    async def test_close_when_not_initialized(self) -> None:
        """Test close_redis handles None gracefully."""
        import insider_signals.storage.redis as redis_module

        redis_module._redis = None

        # Should not raise
        await close_redis()

        assert redis_module._redis is None
