# main.py
# CLI: check an HTML file or URL for the presence of CSS selectors listed in checks.json,
# print a {selector: bool} JSON report.
#   python main.py --file index.html --checks checks.json
#   python main.py --url https://example.com

from __future__ import annotations

import os
import sys
import time
import asyncio
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from tools.check_html import CheckError, check_html, load_checks, report_json
from tools.fetch_html import (
    FETCH_RETRIES,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
    FetchError,
    fetch_html,
)

# ---------- Logging setup ----------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

CHECKSFILE_DEFAULT = "checks.json"


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="html-grader",
        description="Check an HTML file or URL for elements matching the selectors in a checks file.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-f", "--file", metavar="HTML_FILE", help="Path to a local HTML file")
    source.add_argument("-u", "--url", metavar="CHECK_URL", help="The URL to be checked")
    parser.add_argument(
        "-c", "--checks", metavar="CHECK_FILE", default=CHECKSFILE_DEFAULT,
        help=f"Path to a JSON array of selectors (default: {CHECKSFILE_DEFAULT})",
    )
    parser.add_argument("--render", action="store_true", help="Load the URL in headless Chromium")
    parser.add_argument("--retries", type=_non_negative_int, default=FETCH_RETRIES, help="Extra fetch attempts after the first")
    parser.add_argument("--retry-delay", type=float, default=FETCH_RETRY_DELAY, help="Seconds between retries")
    parser.add_argument("--timeout", type=float, default=FETCH_TIMEOUT, help="Per-attempt fetch timeout in seconds")
    return parser


def assert_file_exists(infile: str) -> str:
    if not Path(infile).exists():
        print(f"{infile} does not exist. Exiting.", file=sys.stderr)
        sys.exit(1)
    return infile


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    checks_file = assert_file_exists(args.checks)

    try:
        checks = load_checks(checks_file)
        if args.file:
            data = Path(args.file).read_bytes()
            logging.info(f"📄 Loaded {args.file} ({len(data)} bytes)")
        else:
            data = asyncio.run(
                fetch_html(
                    args.url,
                    retries=args.retries,
                    retry_delay=args.retry_delay,
                    timeout=args.timeout,
                    render=args.render,
                )
            )

        t0 = time.time()
        result = check_html(data, checks)
        logging.info(f"✅ Checked {len(result)} selector(s) in {time.time() - t0:.3f}s")
    except (CheckError, FetchError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(report_json(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
