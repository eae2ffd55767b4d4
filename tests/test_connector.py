import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from prometheus_client import REGISTRY

from translator.connector import UNKNOWN_PRODUCT, Connector, unique
from translator.connectors import create_protocols
from translator.errors import MisconfigurationError, NotFoundError, ServiceUnavailableError, ValidationError
from translator.metrics import POD_NAME
from translator.mqtt_client import MeasurementCache
from translator.plugins.base import Plugin
from translator.plugins.registry import PluginRegistry
from translator.store import ConfigStore

from conftest import LOCAL_CONFIG, LOCAL_TEMPLATE, RecordingConnector


def recording_engine(templates=None, configs=None, plugins=(), protocol="local"):
    recorder = RecordingConnector(protocol)
    store = ConfigStore(
        configs=configs if configs is not None else {"local-demo": dict(LOCAL_CONFIG)},
        templates=templates if templates is not None else {"local": LOCAL_TEMPLATE},
    )
    return Connector(store, PluginRegistry(plugins), {protocol: recorder}), recorder


def test_unique_keeps_first_occurrence():
    assert unique(["a", "b", "a", {"x": 1}, {"x": 1}]) == ["a", "b", {"x": 1}]


async def test_end_to_end_local(connector):
    items = await connector.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})
    assert len(items) == 1
    assert items[0]["id"] == "S1"
    assert items[0]["data"][0]["type"] == "value"
    assert 19 <= items[0]["data"][0]["value"] <= 26


async def test_fixed_resource_path_without_ids(settings, registry):
    store = ConfigStore(
        configs={"x": {"template": "t1"}},
        templates={"t1": {
            "protocol": "local",
            "authConfig": {"resourcePath": ["S1"]},
            "dataObjects": [""],
            "dataPropertyMappings": {"value": "value"},
            "generalConfig": {"hardwareId": {"dataObjectProperty": "id"}},
            "plugins": [],
        }},
    )
    engine = Connector(store, registry, create_protocols(settings, MeasurementCache()))
    items = await engine.fetch({"productCode": "x", "parameters": {"ids": []}})
    assert len(items) == 1
    assert items[0]["id"] == "S1"
    assert [p["type"] for p in items[0]["data"]] == ["value"]


async def test_end_to_end_history_swaps_range(connector):
    end = datetime.now(timezone.utc) - timedelta(hours=2)
    start = end - timedelta(hours=1)
    items = await connector.fetch({
        "productCode": "local-demo",
        "parameters": {"ids": ["S1"], "start": end.isoformat(), "end": start.isoformat()},
    })
    # one point per 10 minutes over the hour
    assert len(items[0]["data"]) == 6


async def test_resolved_template_carries_mode_and_range():
    engine, recorder = recording_engine()
    end = datetime(2025, 1, 1, tzinfo=timezone.utc)
    await engine.fetch({
        "productCode": "local-demo",
        "parameters": {"ids": ["S1"], "startTime": end.isoformat(), "endTime": (end - timedelta(days=1)).isoformat()},
    })
    template, paths = recorder.calls[0]
    assert template["mode"] == "history"
    assert template["parameters"]["start"] <= template["parameters"]["end"]
    assert "limit" not in template["generalConfig"]["query"]["properties"]
    assert template["authConfig"]["template"] == "local"
    assert template["productCode"] == "local-demo"
    assert paths == ["S1"]


async def test_missing_ids_fails_before_dispatch():
    engine, recorder = recording_engine()
    with pytest.raises(ValidationError) as exc_info:
        await engine.fetch({"productCode": "local-demo", "parameters": {}})
    assert "parameters.ids" in exc_info.value.message
    assert recorder.calls == []


async def test_unparseable_time_is_validation_error():
    engine, _ = recording_engine()
    with pytest.raises(ValidationError):
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"], "start": "yesterday"}})


async def test_unknown_product_falls_back_to_default():
    engine, recorder = recording_engine(configs={"default": dict(LOCAL_CONFIG)})
    await engine.fetch({"productCode": "unknown", "parameters": {"ids": ["S1"]}})
    assert recorder.calls[0][0]["productCode"] == "unknown"


async def test_unknown_product_without_default_is_not_found():
    engine, _ = recording_engine()
    with pytest.raises(NotFoundError) as exc_info:
        await engine.fetch({"productCode": "unknown", "parameters": {"ids": ["S1"]}})
    assert exc_info.value.message == "Data product config not found."


async def test_template_reference_problems_are_not_found():
    engine, _ = recording_engine(configs={"local-demo": {"static": {}}})
    with pytest.raises(NotFoundError, match="template not defined"):
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})

    engine, _ = recording_engine(templates={})
    with pytest.raises(NotFoundError, match="template not found"):
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})


async def test_missing_plugin_aborts_before_any_hook():
    class Counting(Plugin):
        name = "counting"

        def __init__(self):
            self.parameters = Mock(side_effect=lambda parameters: parameters)

    counting = Counting()
    template = copy.deepcopy(LOCAL_TEMPLATE)
    template["plugins"] = ["counting", "absent"]
    engine, recorder = recording_engine(templates={"local": template}, plugins=[counting])

    with pytest.raises(MisconfigurationError, match="Missing required plugins"):
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})
    counting.parameters.assert_not_called()
    assert recorder.calls == []


async def test_parameters_hook_runs_before_substitution():
    class Prefix(Plugin):
        name = "prefix"

        def parameters(self, parameters):
            parameters["ids"] = [f"site-{i}" for i in parameters["ids"]]
            return parameters

    template = copy.deepcopy(LOCAL_TEMPLATE)
    template["plugins"] = ["prefix"]
    engine, recorder = recording_engine(templates={"local": template}, plugins=[Prefix()])
    await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})

    resolved, paths = recorder.calls[0]
    assert paths == ["site-S1"]
    assert [p.name for p in resolved["plugins"]] == ["prefix"]


async def test_resource_paths_are_deduplicated():
    engine, recorder = recording_engine()
    await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1", "S2", "S1"]}})
    assert recorder.calls[0][1] == ["S1", "S2"]


@pytest.mark.parametrize("change, message", [
    (lambda t: t.pop("authConfig"), "Insufficient authentication configurations."),
    (lambda t: t["authConfig"].pop("resourcePath"), "Insufficient resource configurations."),
    (lambda t: t.pop("protocol"), "Connection protocol None not found."),
    (lambda t: t.update(protocol="ftp"), "Connection protocol ftp not supported."),
])
async def test_template_misconfiguration(change, message):
    template = copy.deepcopy(LOCAL_TEMPLATE)
    change(template)
    engine, recorder = recording_engine(templates={"local": template})
    with pytest.raises(MisconfigurationError) as exc_info:
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})
    assert exc_info.value.message == message
    assert exc_info.value.status_code == 500
    assert recorder.calls == []


async def test_not_ready_store_is_unavailable(registry):
    engine = Connector(ConfigStore(), registry, {})
    with pytest.raises(ServiceUnavailableError):
        await engine.fetch({"productCode": "local-demo", "parameters": {"ids": ["S1"]}})


async def test_fetch_metrics_are_labeled_by_resolved_config():
    def sample(product_code, status):
        return REGISTRY.get_sample_value(
            "translator_fetch_requests_total",
            {"pod": POD_NAME, "product_code": product_code, "status": status},
        ) or 0

    engine, _ = recording_engine()
    unknown_before = sample(UNKNOWN_PRODUCT, "404")
    for i in range(5):
        with pytest.raises(NotFoundError):
            await engine.fetch({"productCode": f"junk-{i}", "parameters": {"ids": ["S1"]}})
    assert sample(UNKNOWN_PRODUCT, "404") == unknown_before + 5
    assert REGISTRY.get_sample_value(
        "translator_fetch_requests_total", {"pod": POD_NAME, "product_code": "junk-0", "status": "404"}
    ) is None

    engine, _ = recording_engine(configs={"default": dict(LOCAL_CONFIG)})
    default_before = sample("default", "200")
    await engine.fetch({"productCode": "other-junk", "parameters": {"ids": ["S1"]}})
    assert sample("default", "200") == default_before + 1
    assert REGISTRY.get_sample_value(
        "translator_fetch_requests_total", {"pod": POD_NAME, "product_code": "other-junk", "status": "200"}
    ) is None
