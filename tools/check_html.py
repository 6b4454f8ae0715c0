# tools/check_html.py
# BeautifulSoup presence checker: which CSS selectors match anything in a page.

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Union

import soupsieve
from bs4 import BeautifulSoup, ParserRejectedMarkup


class CheckError(Exception):
    """Base class for checker failures."""


class ParseFailure(CheckError):
    pass


class SelectorSyntaxError(CheckError):
    def __init__(self, selector: str, reason: str = ""):
        self.selector = selector
        msg = f"Invalid selector {selector!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ChecksFileError(CheckError, ValueError):
    pass


def check_html(
    html_text: Union[str, bytes],
    selectors: Iterable[str],
    parser: str = "html.parser",
) -> Dict[str, bool]:
    """
    Parse the document once, then test every selector against it.
    Returns: {selector: bool} with keys in ascending sorted order.

    An invalid selector aborts the whole batch with SelectorSyntaxError.
    """
    if not isinstance(html_text, (str, bytes)):
        raise ParseFailure(f"Expected HTML text, got {type(html_text).__name__}")
    try:
        soup = BeautifulSoup(html_text, parser)
    except ParserRejectedMarkup as e:
        raise ParseFailure(f"Parser rejected markup: {e}") from e

    out: Dict[str, bool] = {}
    for sel in sorted(set(selectors)):
        try:
            els = soup.select(sel)
        except soupsieve.SelectorSyntaxError as e:
            raise SelectorSyntaxError(sel, str(e).splitlines()[0]) from e
        out[sel] = len(els) > 0
    return out


def parse_checks(raw: Union[str, bytes]) -> List[str]:
    """Decode a checks list: a JSON array of selector strings."""
    try:
        checks = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ChecksFileError(f"Checks are not valid JSON: {e}") from e

    if not isinstance(checks, list):
        raise ChecksFileError(f"Checks must be a JSON array, got {type(checks).__name__}")
    bad = [c for c in checks if not isinstance(c, str)]
    if bad:
        raise ChecksFileError(f"Checks must be strings, got {bad[0]!r}")
    return checks


def load_checks(checks_file: Union[str, Path]) -> List[str]:
    # json.loads detects the encoding of raw bytes
    return parse_checks(Path(checks_file).read_bytes())


def report_json(result: Dict[str, bool]) -> str:
    # keys keep the checker's sorted order
    return json.dumps(result, indent=4)
