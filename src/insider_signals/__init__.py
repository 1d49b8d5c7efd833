"""SEC Form 4 ingestion and insider signal classification."""

__version__ = "0.1.0"
