from datetime import datetime, timedelta, timezone

from translator.mode import DEFAULT_TIME_RANGE, Mode, interpret_mode

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def template_with_limit():
    return {"generalConfig": {"query": {"properties": {"limit": {"limit": 1}, "unit": {"unit": "C"}}}}}


def test_latest_defaults_to_last_24_hours():
    template = interpret_mode(template_with_limit(), {"end": NOW}, now=NOW)
    assert template["mode"] == Mode.LATEST.value
    assert template["parameters"]["start"] == NOW - DEFAULT_TIME_RANGE
    assert template["parameters"]["end"] == NOW
    assert "limit" in template["generalConfig"]["query"]["properties"]


def test_missing_end_defaults_to_now():
    template = interpret_mode({}, {}, now=NOW)
    assert template["parameters"]["end"] == NOW
    assert template["mode"] == "latest"


def test_history_drops_limit():
    start, end = NOW - timedelta(days=2), NOW - timedelta(days=1)
    template = interpret_mode(template_with_limit(), {"start": start, "end": end}, now=NOW)
    assert template["mode"] == "history"
    assert template["generalConfig"]["query"]["properties"] == {"unit": {"unit": "C"}}


def test_reversed_range_is_swapped():
    early, late = NOW - timedelta(days=2), NOW - timedelta(days=1)
    template = interpret_mode({}, {"start": late, "end": early}, now=NOW)
    assert template["parameters"]["start"] == early
    assert template["parameters"]["end"] == late
    assert template["mode"] == "history"


def test_future_end_is_prediction():
    template = interpret_mode({}, {"start": NOW, "end": NOW + timedelta(hours=1)}, now=NOW)
    assert template["mode"] == "prediction"
