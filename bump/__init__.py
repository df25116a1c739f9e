from bump.codes import ExitCategory
from bump.context import Bump
from bump.errors import BumpError
from bump.monitor import (
    free_memory_report,
    load_report,
    memory_report,
    poll_reports,
    slow,
)
from bump.stamp import current_month, make_stamp, path_as_name

__all__ = [
    "Bump",
    "BumpError",
    "ExitCategory",
    "current_month",
    "free_memory_report",
    "load_report",
    "make_stamp",
    "memory_report",
    "path_as_name",
    "poll_reports",
    "slow",
]
