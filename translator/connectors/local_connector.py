"""
Local data source connector.
Returns generated test data instead of calling a backend.
"""
import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .base import BaseProtocolConnector
from ..mode import Mode
from ..response import handle_data

BUCKET = timedelta(minutes=10)
VALUE_RANGE = (19.0, 26.0)


def generate_data(resource_id: Any, time_range: Optional[Tuple[datetime, datetime]] = None) -> List[Dict[str, Any]]:
    """Generate test data points for a resource id.

    Without a range a single point is returned. With a range there is one point
    per 10 minute bucket from start to end, at least one.
    """
    label = f"Sensor {resource_id}"
    if time_range is None:
        return [{"value": round(random.uniform(*VALUE_RANGE), 2), "name": label, "id": resource_id}]

    start, end = time_range
    length = max(int((end - start) / BUCKET), 1)
    return [
        {
            "timestamp": int((start + i * BUCKET).timestamp() * 1000),
            "value": round(random.uniform(*VALUE_RANGE), 2),
            "name": label,
            "id": resource_id,
        }
        for i in range(length)
    ]


class LocalConnector(BaseProtocolConnector):
    """Local test data connector."""

    protocol = "local"

    async def get_data(self, template: Dict[str, Any], paths: List[Any]) -> List[Dict[str, Any]]:
        time_range = None
        if template.get("mode") in (Mode.HISTORY.value, Mode.PREDICTION.value):
            parameters = template.get("parameters") or {}
            time_range = (parameters["start"], parameters["end"])

        items: List[Dict[str, Any]] = []
        for path in paths:
            items.extend(await handle_data(template, path, generate_data(path, time_range)))
        self.logger.debug(f"🔍 Generated {len(items)} local items for {len(paths)} paths")
        return items
