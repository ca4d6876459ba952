"""
Command-line entry point.

    stock-api serve [--host HOST] [--port PORT]
    stock-api ingest path/to/bhavcopy.csv [--delete]
"""

import argparse
import json
import shutil
import sys
import tempfile
from pathlib import Path

from stock_common.observability import init_observability, get_logger

from stock_api import config

logger = get_logger("stock-api.cli")

EXIT_OK = 0
EXIT_PERSISTENCE_ERROR = 1
EXIT_BAD_INPUT = 2


def _serve(args) -> int:
    import uvicorn

    uvicorn.run("stock_api.main:app", host=args.host, port=args.port)
    return EXIT_OK


def _ingest(args) -> int:
    from stock_api.csv_reader import CsvFormatError, MissingColumnsError
    from stock_api.database import init_db
    from stock_api.ingestion import ingest_file
    from stock_api.repository import PersistenceError, SqliteStockRepository

    init_observability(config.SERVICE_NAME, config.SERVICE_VERSION, log_level=config.LOG_LEVEL)
    init_db()

    source = Path(args.csv)
    if not source.is_file():
        logger.error("CSV file not found at %s", source)
        return EXIT_BAD_INPUT

    # ingest_file deletes what it ingests, so the source is only handed over with --delete
    if not args.delete:
        with tempfile.NamedTemporaryFile(suffix=".csv", delete=False) as tmp:
            target = Path(tmp.name)
        shutil.copyfile(source, target)
    else:
        target = source

    try:
        report = ingest_file(target, SqliteStockRepository(), args.chunk_rows)
    except MissingColumnsError as exc:
        logger.error("%s", exc)
        print(json.dumps({"error": "Missing required columns", "missing_columns": exc.missing}))
        return EXIT_BAD_INPUT
    except CsvFormatError as exc:
        logger.error("%s", exc)
        print(json.dumps({"error": "Malformed CSV file", "details": str(exc)}))
        return EXIT_BAD_INPUT
    except PersistenceError as exc:
        logger.error("Database insertion error: %s", exc)
        print(json.dumps({"error": "Database insertion error", "details": str(exc)}))
        return EXIT_PERSISTENCE_ERROR
    finally:
        if not args.delete:
            target.unlink(missing_ok=True)

    print(json.dumps(report.to_response(), indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stock-api", description="Daily stock CSV ingestion service")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=config.HOST, help="Interface to bind")
    serve.add_argument("--port", type=int, default=config.PORT, help="Port to listen on")
    serve.set_defaults(func=_serve)

    ingest = sub.add_parser("ingest", help="Ingest a CSV file from disk")
    ingest.add_argument("csv", help="Path to the daily stock CSV")
    ingest.add_argument(
        "--delete",
        action="store_true",
        help="Remove the source file once its records are persisted",
    )
    ingest.add_argument(
        "--chunk-rows",
        type=int,
        default=config.CSV_CHUNK_ROWS,
        help="Rows parsed per chunk",
    )
    ingest.set_defaults(func=_ingest)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
