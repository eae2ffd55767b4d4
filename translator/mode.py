"""
Request mode interpretation (latest/history/prediction).
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from .utils.paths import delete_path
from .utils.timestamp_utils import utc_now

# Some backends always need a time range, so latest values are queried over
# the last 24 hours and narrowed with a limit query property.
DEFAULT_TIME_RANGE = timedelta(hours=24)


class Mode(str, Enum):
    """Request mode enumeration."""
    LATEST = "latest"
    HISTORY = "history"
    PREDICTION = "prediction"


def interpret_mode(template: Dict[str, Any], parameters: Dict[str, Any],
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    """Resolve the request mode and time range, and attach both to the template.

    Args:
        template: Connection template (modified in place)
        parameters: Request parameters with optional ``start``/``end`` datetimes
        now: Reference time, defaults to the current time

    Returns:
        The template with ``mode`` and ``parameters`` set
    """
    now = now or utc_now()
    mode = Mode.LATEST

    start: Optional[datetime] = parameters.get("start")
    end: Optional[datetime] = parameters.get("end")

    if start is not None and end is not None:
        if end < start:
            parameters["start"], parameters["end"] = end, start
        mode = Mode.HISTORY
        # History is unbounded
        delete_path(template, ["generalConfig", "query", "properties", "limit"])
    else:
        parameters["start"] = now - DEFAULT_TIME_RANGE
        if end is None:
            parameters["end"] = now

    if parameters["end"] > now:
        mode = Mode.PREDICTION

    template["mode"] = mode.value
    template["parameters"] = parameters
    return template
