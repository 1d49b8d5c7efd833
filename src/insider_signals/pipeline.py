"""Form 4 processing pipeline.

Architecture:
  XML bytes → [Normalizer] → tree → [Entity Extractor] → Filing
                                                          ↓
                                  [Signal Classifier] per transaction
                                                          ↓
                       [FilingStore.upsert_filing] → [AlertPublisher] (High/Medium)

Normalize, extract and classify are pure and synchronous. The processor
only adds the two I/O hops (store, publisher). Retries belong to the
caller's scheduler: a failed filing is marked failed and the error propagates.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from insider_signals.config import get_settings
from insider_signals.core.exceptions import ExtractionError
from insider_signals.core.logging import get_logger
from insider_signals.form4.accession import normalize_accession_number
from insider_signals.form4.extractor import ExtractionResult, extract_filing
from insider_signals.form4.normalizer import normalize
from insider_signals.signals.alerts import build_alerts
from insider_signals.signals.models import Tier

if TYPE_CHECKING:
    from insider_signals.form4.diagnostics import Diagnostic
    from insider_signals.form4.models import Filing
    from insider_signals.signals.alerts import AlertPublisher, SignalAlert
    from insider_signals.storage.base import FilingStore, UpsertResult

logger = get_logger(__name__)


def extract(xml: str | bytes, accession_number: str) -> ExtractionResult:
    """normalize → extract in one call. Pure.

    Raises:
        MalformedDocument: Unparsable XML
        MissingRequiredField: A required field is absent
    """
    tree = normalize(xml, accession_number)
    return extract_filing(tree, accession_number)


@dataclass
class ProcessingResult:
    """Result of processing a single filing."""

    accession_number: str
    filing: Filing
    upsert: UpsertResult
    diagnostics: tuple[Diagnostic, ...] = ()
    alerts: list[SignalAlert] = field(default_factory=list)
    processing_time_ms: float = 0.0


class FilingProcessor:
    """Runs filings through extraction, classification, persistence and alerting.

    Usage:
        processor = FilingProcessor(store=PostgresFilingStore(db), publisher=bus)
        result = await processor.process(xml_bytes, "0001127602-25-022861")
    """

    def __init__(
        self,
        store: FilingStore,
        publisher: AlertPublisher | None = None,
        min_alert_tier: Tier | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        settings = get_settings()
        self._store = store
        self._publisher = publisher
        self._min_alert_tier = min_alert_tier or Tier(settings.alert_min_tier)
        self._max_concurrency = max_concurrency or settings.processing_workers

    async def process(self, xml: str | bytes, accession_number: str) -> ProcessingResult:
        """Process one filing.

        Any failure after the filing is marked "processing" marks it
        "failed" with the error text before the exception propagates.

        Raises:
            ValueError: Invalid accession number
            ExtractionError: The filing could not be extracted
            Exception: The store or the publisher failed
        """
        start_time = time.perf_counter()
        accession_number = normalize_accession_number(accession_number)
        log = logger.bind(accession=accession_number)

        await self._store.mark_filing_status(accession_number, "processing")
        try:
            extraction = extract(xml, accession_number)
        except ExtractionError as e:
            log.error("Filing extraction failed", error_type=type(e).__name__, error=e.message)
            await self._store.mark_filing_status(accession_number, "failed", e.message)
            raise

        filing = extraction.filing
        try:
            upsert = await self._store.upsert_filing(filing)
            # Only lines this upsert inserted are announced
            alerts = build_alerts(
                filing,
                self._min_alert_tier,
                fingerprints=upsert.inserted_fingerprints,
            )
            if self._publisher is not None:
                for alert in alerts:
                    await self._publisher.publish_alert(alert)
        except Exception as e:
            log.exception("Filing processing failed", error_type=type(e).__name__)
            await self._store.mark_filing_status(accession_number, "failed", str(e))
            raise

        await self._store.mark_filing_status(accession_number, "completed")

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "Filing processed",
            issuer_cik=filing.issuer.cik,
            owners=len(filing.reporting_owners),
            transactions=len(filing.transactions),
            inserted=upsert.inserted,
            duplicates=upsert.duplicates,
            alerts=len(alerts),
            warnings=len(extraction.diagnostics),
            processing_time_ms=round(elapsed_ms, 2),
        )
        return ProcessingResult(
            accession_number=accession_number,
            filing=filing,
            upsert=upsert,
            diagnostics=extraction.diagnostics,
            alerts=alerts,
            processing_time_ms=elapsed_ms,
        )

    async def process_many(
        self,
        filings: Iterable[tuple[str | bytes, str]],
    ) -> list[ProcessingResult | BaseException]:
        """Process (xml, accession_number) pairs concurrently.

        One failing filing does not affect the others; its exception is
        returned in its slot. Results keep input order.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(xml: str | bytes, accession_number: str) -> ProcessingResult:
            async with semaphore:
                return await self.process(xml, accession_number)

        return await asyncio.gather(
            *(run(xml, accession) for xml, accession in filings),
            return_exceptions=True,
        )
