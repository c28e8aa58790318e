"""Reserve tracking for Raydium AMM v4 pools."""

from .log_parser import extract_reserves, parse_reserve_line, scan_reserve_log_lines
from .registry import ReserveTrackerRegistry
from .reserve_tracker import ReserveTracker, TrackerLifecycle, TrackerStatus

__all__ = [
    "ReserveTracker",
    "ReserveTrackerRegistry",
    "TrackerLifecycle",
    "TrackerStatus",
    "extract_reserves",
    "parse_reserve_line",
    "scan_reserve_log_lines",
]
