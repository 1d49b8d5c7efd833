"""CLI entry point for insider-signals."""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

from insider_signals.config import get_settings
from insider_signals.core.exceptions import ExtractionError
from insider_signals.core.logging import setup_logging
from insider_signals.pipeline import extract


def _extract(args: argparse.Namespace) -> int:
    xml = Path(args.file).read_bytes()
    try:
        result = extract(xml, args.accession)
    except ExtractionError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    output = {
        "filing": result.filing.to_record(),
        "diagnostics": [
            {"kind": d.kind.value, "message": d.message, "field_path": d.field_path}
            for d in result.diagnostics
        ],
    }
    option = orjson.OPT_INDENT_2 if args.pretty else 0
    sys.stdout.write(orjson.dumps(output, option=option).decode() + "\n")
    return 0


async def _process(args: argparse.Namespace) -> int:
    from insider_signals.worker import processor_lifespan

    xml = Path(args.file).read_bytes()
    async with processor_lifespan(get_settings()) as processor:
        try:
            result = await processor.process(xml, args.accession)
        except ExtractionError as e:
            print(f"error: {e.message}", file=sys.stderr)
            return 1

    output = {
        "accession_number": result.accession_number,
        "inserted": result.upsert.inserted,
        "duplicates": result.upsert.duplicates,
        "alerts": len(result.alerts),
        "warnings": len(result.diagnostics),
    }
    sys.stdout.write(orjson.dumps(output).decode() + "\n")
    return 0


async def _init_db() -> None:
    from insider_signals.storage.database import close_database, init_database

    db = await init_database(get_settings().database_url)
    try:
        await db.ensure_schema()
    finally:
        await close_database()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Form 4 ingestion and signal classification")
    sub = parser.add_subparsers(dest="command", required=True)

    p_extract = sub.add_parser("extract", help="Extract and classify a local Form 4 XML file")
    p_extract.add_argument("file", help="Path to ownershipDocument XML")
    p_extract.add_argument("--accession", required=True, help="Accession number of the filing")
    p_extract.add_argument("--pretty", action="store_true", help="Indent JSON output")

    p_process = sub.add_parser(
        "process", help="Store a Form 4 XML file and publish its signals to the alert stream"
    )
    p_process.add_argument("file", help="Path to ownershipDocument XML")
    p_process.add_argument("--accession", required=True, help="Accession number of the filing")

    sub.add_parser("init-db", help="Create database tables")

    args = parser.parse_args(argv)
    setup_logging(get_settings())

    if args.command == "extract":
        return _extract(args)
    if args.command == "process":
        return asyncio.run(_process(args))
    asyncio.run(_init_db())
    return 0


if __name__ == "__main__":
    sys.exit(main())
