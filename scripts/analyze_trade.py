"""
Scripts - Analyze Trade.

============================================================
RESPONSIBILITY
============================================================
Runs one pre-trade upload from the command line and prints the
result as JSON.

============================================================
USAGE
============================================================
python -m scripts.analyze_trade --file 5min=chart5.png --file 1h=chart1h.png

Options:
  --file LABEL=PATH    Screenshot per timeframe (repeatable)
  --primary LABEL      Primary timeframe (first file by default)
  --notes TEXT         Trader notes
  --session TEXT       Session time, e.g. "9:35 AM"
  --instrument SYMBOL  Instrument (MNQ by default)
  --account-size USD   Account size

EXIT CODES:
- 0: Trade recorded
- 1: Upload rejected
- 2: Storage failure

============================================================
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from core.config import JournalConfig
from core.exceptions import InputValidationError, PersistenceError
from core.log_setup import setup_logging
from database import configure_database, init_database
from ingestion import TradeIngestionPipeline
from uploads import TradeUpload, UploadedFile


logger = logging.getLogger("analyze_trade")


def _file_argument(value: str) -> UploadedFile:
    label, sep, path = value.partition("=")
    if not sep or not label or not path:
        raise argparse.ArgumentTypeError(f"expected LABEL=PATH, got '{value}'")
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise argparse.ArgumentTypeError(f"cannot read {path}: {e}")
    return UploadedFile(label=label, filename=file_path.name, data=data)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze a trade setup from chart screenshots")
    parser.add_argument("--file", dest="files", action="append", type=_file_argument, required=True)
    parser.add_argument("--primary", default=None)
    parser.add_argument("--notes", default=None)
    parser.add_argument("--session", default="")
    parser.add_argument("--instrument", default=None)
    parser.add_argument("--account-size", type=float, default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = JournalConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    engine = configure_database(config.storage.database_url)
    init_database(engine, seed=True)

    context = {"session_info": args.session}
    if args.instrument:
        context["instrument"] = args.instrument
    if args.account_size:
        context["account_size"] = args.account_size

    upload = TradeUpload(
        files=args.files,
        context=context,
        notes=args.notes,
        primary_timeframe=args.primary,
    )

    try:
        result = TradeIngestionPipeline(config).ingest(upload)
    except InputValidationError as e:
        logger.error(f"Upload rejected: {e.message}")
        return 1
    except PersistenceError as e:
        logger.error(f"Trade could not be stored: {e.message}")
        return 2

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
