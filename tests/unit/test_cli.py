"""Tests for the insider-signals CLI."""

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest
import structlog

from insider_signals.cli import main
from insider_signals.pipeline import FilingProcessor
from insider_signals.signals.alerts import CollectingPublisher
from insider_signals.signals.models import Tier
from insider_signals.storage.memory import InMemoryFilingStore


@pytest.fixture(autouse=True)
def no_logging_setup():
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=sys.stderr))
    with patch("insider_signals.cli.setup_logging"):
        yield
    structlog.reset_defaults()


@pytest.fixture
def filing_path(tmp_path: Path, ingredion_xml: str) -> Path:
    path = tmp_path / "form4.xml"
    path.write_text(ingredion_xml, encoding="utf-8")
    return path


class TestExtractCommand:
    """Tests for `insider-signals extract`."""

    def test_prints_record(self, filing_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["extract", str(filing_path), "--accession", "0002020263-25-000004"])

        assert exit_code == 0
        output = orjson.loads(capsys.readouterr().out)
        filing = output["filing"]
        assert filing["accession_number"] == "0002020263-25-000004"
        assert filing["issuers"][0]["trading_symbol"] == "INGR"
        assert filing["transactions"][0]["shares"] == "26.686"
        assert filing["transactions"][0]["tier"] == "low"
        assert output["diagnostics"] == []

    def test_pretty(self, filing_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["extract", str(filing_path), "--accession", "0002020263-25-000004", "--pretty"])

        assert "\n  " in capsys.readouterr().out

    def test_extraction_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "broken.xml"
        path.write_text("<ownershipDocument><issuer>", encoding="utf-8")

        exit_code = main(["extract", str(path), "--accession", "0002020263-25-000004"])

        assert exit_code == 1
        assert "error:" in capsys.readouterr().err

    def test_accession_required(self, filing_path: Path) -> None:
        with pytest.raises(SystemExit):
            main(["extract", str(filing_path)])


class TestInitDbCommand:
    """Tests for `insider-signals init-db`."""

    def test_init_db(self) -> None:
        mock_db = MagicMock()
        mock_db.ensure_schema = AsyncMock()

        with (
            patch(
                "insider_signals.storage.database.init_database",
                new_callable=AsyncMock,
                return_value=mock_db,
            ) as mock_init,
            patch(
                "insider_signals.storage.database.close_database",
                new_callable=AsyncMock,
            ) as mock_close,
        ):
            exit_code = main(["init-db"])

        assert exit_code == 0
        mock_init.assert_called_once()
        mock_db.ensure_schema.assert_called_once()
        mock_close.assert_called_once()


class TestProcessCommand:
    """Tests for `insider-signals process`."""

    @pytest.fixture
    def publisher(self) -> CollectingPublisher:
        return CollectingPublisher()

    @pytest.fixture(autouse=True)
    def in_memory_lifespan(self, publisher: CollectingPublisher):
        @asynccontextmanager
        async def lifespan(settings):
            yield FilingProcessor(
                store=InMemoryFilingStore(),
                publisher=publisher,
                min_alert_tier=Tier(settings.alert_min_tier),
                max_concurrency=1,
            )

        with patch("insider_signals.worker.processor_lifespan", lifespan):
            yield

    def test_prints_summary(
        self,
        tmp_path: Path,
        joint_xml: str,
        publisher: CollectingPublisher,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "joint.xml"
        path.write_text(joint_xml, encoding="utf-8")

        exit_code = main(["process", str(path), "--accession", "000095017025101234"])

        assert exit_code == 0
        assert orjson.loads(capsys.readouterr().out) == {
            "accession_number": "0000950170-25-101234",
            "inserted": 6,
            "duplicates": 0,
            "alerts": 6,
            "warnings": 0,
        }
        assert len(publisher.alerts) == 6

    def test_extraction_error(
        self,
        tmp_path: Path,
        publisher: CollectingPublisher,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "broken.xml"
        path.write_text("<ownershipDocument><issuer>", encoding="utf-8")

        exit_code = main(["process", str(path), "--accession", "0000950170-25-101234"])

        assert exit_code == 1
        assert "error:" in capsys.readouterr().err
        assert publisher.alerts == []
