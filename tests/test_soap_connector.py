import os
from unittest.mock import Mock, patch

import pytest
from requests_ntlm import HttpNtlmAuth
from zeep.exceptions import Error as ZeepError

from translator.connectors.soap_connector import SoapConnector, has_content
from translator.errors import MisconfigurationError
from translator.plugins.base import Plugin
from translator.plugins.soap_basic import SoapBasicPlugin
from translator.plugins.soap_ntlm import SoapNtlmPlugin

MODULE = "translator.connectors.soap_connector"


def make_template(plugins=None, soap_path="GetMeasurement"):
    auth_config = {
        "type": "soap-basic",
        "url": "http://backend.test/service?wsdl",
        "username": "DOMAIN\\user",
        "password": "secret",
        "resourcePath": [{"deviceId": "D1"}],
    }
    if soap_path:
        auth_config["soapPath"] = soap_path
    return {
        "productCode": "soap/demo",
        "protocol": "soap",
        "authConfig": auth_config,
        "generalConfig": {"hardwareId": {"dataObjectProperty": "hardwareId"}},
        "dataObjects": [""],
        "dataPropertyMappings": {"value": "Value"},
        "plugins": plugins if plugins is not None else [SoapBasicPlugin()],
    }


def test_has_content():
    assert has_content({"Value": 1})
    assert not has_content({"Value": None})
    assert not has_content({})
    assert not has_content(None)
    assert has_content([{"a": 1}])


def test_wsdl_file_is_safe_per_product(tmp_path):
    connector = SoapConnector(wsdl_dir=str(tmp_path))
    assert connector.wsdl_file("soap/demo") == os.path.join(str(tmp_path), "soap%2Fdemo.xml")


async def test_wsdl_is_downloaded_once(tmp_path):
    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>") as download:
        first = await connector._ensure_wsdl(make_template())
        second = await connector._ensure_wsdl(make_template())
    assert first == second
    assert download.call_count == 1
    with open(first, encoding="utf-8") as f:
        assert f.read() == "<definitions/>"


async def test_ntlm_plugin_selects_ntlm_download_auth(tmp_path):
    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>") as download:
        await connector._ensure_wsdl(make_template(plugins=[SoapNtlmPlugin()]))
    assert isinstance(download.call_args.args[1], HttpNtlmAuth)


async def test_get_data_calls_operation_per_path(tmp_path):
    client = Mock()
    client.service.GetMeasurement.side_effect = [{"Value": 7}, {"Value": None}]

    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>"), \
            patch(f"{MODULE}.Client", return_value=client):
        items = await connector.get_data(make_template(), [{"deviceId": "D1"}, {"deviceId": "D2"}])

    client.service.GetMeasurement.assert_any_call(deviceId="D1")
    assert len(items) == 1
    assert items[0]["id"] == "D1"
    assert items[0]["data"][0]["value"] == 7
    # request hooks run over the client
    assert client.transport.session.auth.username == "DOMAIN\\user"


async def test_bound_operation_path(tmp_path):
    client = Mock()
    client.bind.return_value.GetMeasurement.return_value = {"Value": 1}

    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>"), \
            patch(f"{MODULE}.Client", return_value=client):
        items = await connector.get_data(make_template(soap_path="Service.Port.GetMeasurement"), [{"deviceId": "D1"}])

    client.bind.assert_called_with("Service", "Port")
    assert items[0]["id"] == "D1"


async def test_fault_yields_no_items(tmp_path):
    client = Mock()
    client.service.GetMeasurement.side_effect = ZeepError("fault")

    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>"), \
            patch(f"{MODULE}.Client", return_value=client):
        assert await connector.get_data(make_template(), [{"deviceId": "D1"}]) == []


async def test_client_creation_failure_notifies_onerror(tmp_path):
    class Watcher(Plugin):
        name = "watcher"

        def __init__(self):
            self.onerror = Mock()

    watcher = Watcher()
    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>"), \
            patch(f"{MODULE}.Client", side_effect=ZeepError("bad wsdl")):
        items = await connector.get_data(make_template(plugins=[watcher]), [{"deviceId": "D1"}])

    assert items == []
    watcher.onerror.assert_called_once()


async def test_missing_operation_is_misconfiguration(tmp_path):
    connector = SoapConnector(wsdl_dir=str(tmp_path))
    with pytest.raises(MisconfigurationError):
        await connector.get_data(make_template(soap_path=None), [{"deviceId": "D1"}])


async def test_mismatched_arguments_yield_no_items(tmp_path):
    client = Mock()
    client.service.GetMeasurement.side_effect = TypeError(
        "{http://backend.test}GetMeasurement() got an unexpected keyword argument 'deviceId'"
    )

    connector = SoapConnector(wsdl_dir=str(tmp_path))
    assert connector._execute(client, "GetMeasurement", {"deviceId": "D1"}) is None
    with patch(f"{MODULE}.download_wsdl", return_value="<definitions/>"), \
            patch(f"{MODULE}.Client", return_value=client):
        assert await connector.get_data(make_template(), [{"deviceId": "D1"}]) == []
