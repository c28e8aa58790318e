"""
Reserve extraction from pool log notifications.

The AMM program emits a line containing the marker token followed by the
base and quote reserves as the last two whitespace-separated fields, e.g.
``Program log: rb, rq: 1000000, 2000000``. Structured reserve records
take precedence; scanning the text lines is the legacy fallback.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

from src.ledger.errors import DecodeError
from src.pools import LogBatch

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "rb, rq"


def _parse_amount(raw: str, line: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise DecodeError(f"Non-numeric reserve field {raw!r} in log line {line!r}")
    return int(raw)


def parse_reserve_line(line: str) -> Tuple[int, int]:
    """
    Parse the (base, quote) reserves from a marker line.

    Raises:
        DecodeError: If the trailing fields are not non-negative integers
    """
    fields = line.split()
    if len(fields) < 2:
        raise DecodeError(f"Reserve line has fewer than two fields: {line!r}")

    base_raw, quote_raw = fields[-2], fields[-1]
    if base_raw.endswith(","):
        base_raw = base_raw[:-1]

    return _parse_amount(base_raw, line), _parse_amount(quote_raw, line)


def scan_reserve_log_lines(lines: Sequence[str], marker: str = DEFAULT_MARKER) -> Optional[Tuple[int, int]]:
    """
    Find the most recent marker line and parse its reserves.

    Returns:
        (base, quote) reserves, or None when no line carries the marker

    Raises:
        DecodeError: If the most recent marker line is malformed
    """
    for line in reversed(lines):
        if marker in line:
            return parse_reserve_line(line)
    return None


def _validate_record(reserves: Iterable) -> Tuple[int, int]:
    try:
        base, quote = reserves
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Structured reserve record is not a pair: {reserves!r}") from e

    for value in (base, quote):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise DecodeError(f"Structured reserve record holds an invalid amount: {reserves!r}")
    return base, quote


def extract_reserves(batch: LogBatch, marker: str = DEFAULT_MARKER) -> Optional[Tuple[int, int]]:
    """
    Reserves carried by a notification, None if it carries none.

    Batches of failed transactions never carry reserves.

    Raises:
        DecodeError: If the reserve record or marker line is malformed
    """
    if batch.failed:
        logger.debug(f"Ignoring failed transaction {batch.signature}")
        return None

    if batch.reserves is not None:
        return _validate_record(batch.reserves)

    return scan_reserve_log_lines(batch.lines, marker)
