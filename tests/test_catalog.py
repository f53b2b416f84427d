"""
Unit tests for homebridge_api/catalog.py.
"""

from __future__ import annotations

import pytest

from homebridge_api.catalog import (
    OPERATIONS,
    RESOURCES,
    build_request,
    get_operation,
    list_operations,
    render_path,
)
from homebridge_api.config import HTTP_METHODS
from homebridge_api.errors import ErrorKind, HomebridgeError


class TestCatalogTable:

    def test_all_resources_present(self):
        assert set(RESOURCES) == {
            "accessories", "auth", "backup", "config", "platform",
            "plugins", "server", "setup", "status", "users",
        }

    def test_entries_well_formed(self):
        for (resource, operation), spec in OPERATIONS.items():
            assert spec.method in HTTP_METHODS, (resource, operation)
            assert spec.path.startswith("/api/"), (resource, operation)

    def test_only_login_unauthenticated(self):
        unauthenticated = [key for key, spec in OPERATIONS.items() if not spec.authenticated]
        assert unauthenticated == [("auth", "login")]

    def test_list_operations_for_resource(self):
        ops = list_operations("accessories")
        assert ("accessories", "list") in ops
        assert all(resource == "accessories" for resource, _ in ops)

    def test_unknown_operation(self):
        with pytest.raises(HomebridgeError) as exc_info:
            get_operation("accessories", "explode")
        assert exc_info.value.kind == ErrorKind.UNKNOWN_OPERATION


class TestBuildRequest:

    def test_list_accessories(self):
        request = build_request("accessories", "list")
        assert (request.method, request.path, request.body) == ("GET", "/api/accessories", None)

    def test_placeholder_substitution(self):
        request = build_request("server", "restartChild", {"deviceId": "0E:3C:22:18:EC:79"})
        assert request.method == "PUT"
        assert request.path == "/api/server/restart/0E%3A3C%3A22%3A18%3AEC%3A79"

    def test_scoped_plugin_name_encoded(self):
        request = build_request("plugins", "lookup", {"pluginName": "@scope/homebridge-foo"})
        assert request.path == "/api/plugins/lookup/%40scope%2Fhomebridge-foo"

    def test_missing_required_parameter(self):
        with pytest.raises(HomebridgeError) as exc_info:
            build_request("accessories", "getAccessory", {"uniqueId": ""})
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER
        assert "uniqueId" in exc_info.value.message

    def test_set_characteristic_body(self):
        request = build_request("accessories", "setCharacteristic", {
            "uniqueId": "abc", "characteristicType": "On", "value": False,
        })
        assert request.body == {"characteristicType": "On", "value": False}

    def test_update_config_parses_json(self):
        request = build_request("config", "updateConfig", {"config": '{"bridge": {"name": "HB"}}'})
        assert request.method == "POST"
        assert request.body == {"bridge": {"name": "HB"}}

    def test_update_config_invalid_json(self):
        with pytest.raises(HomebridgeError) as exc_info:
            build_request("config", "updateConfig", {"config": "{not json"})
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER

    def test_create_user_defaults_admin_false(self):
        request = build_request("users", "create", {"name": "A", "username": "a", "password": "pw"})
        assert request.body == {"name": "A", "username": "a", "password": "pw", "admin": False}

    def test_deactivate_otp_password_field(self):
        request = build_request("users", "deactivateOTP", {"otpPassword": "pw"})
        assert request.body == {"password": "pw"}

    def test_delete_device_pairing_query(self):
        request = build_request("server", "deleteDevicePairing", {
            "deviceId": "AA", "resetPairingInfo": True,
        })
        assert request.method == "DELETE"
        assert request.query == {"resetPairingInfo": "true"}

    def test_delete_cached_accessories_body_is_list(self):
        request = build_request("server", "deleteCachedAccessories", {
            "accessories": [{"uuid": "u1", "cacheFile": "cachedAccessories"}, {"uuid": "u2"}],
        })
        assert request.body == [
            {"uuid": "u1", "cacheFile": "cachedAccessories"},
            {"uuid": "u2", "cacheFile": ""},
        ]

    def test_bridge_adapters(self):
        request = build_request("server", "setBridgeNetworkInterfaces", {
            "adapters": [{"name": "eth0"}, "wlan0"],
        })
        assert request.body == {"adapters": ["eth0", "wlan0"]}

    def test_grouped_collections(self):
        request = build_request("server", "setBridgeNetworkInterfaces", {
            "adapters": {"adapter": [{"name": "eth0"}]},
        })
        assert request.body == {"adapters": ["eth0"]}

        request = build_request("server", "deleteCachedAccessories", {
            "accessories": {"accessory": [{"uuid": "u1"}]},
        })
        assert request.body == [{"uuid": "u1", "cacheFile": ""}]

    @pytest.mark.parametrize("accessories", [
        [{"cacheFile": "x"}],
        [{"uuid": ""}],
        ["u1"],
        "u1",
    ])
    def test_malformed_accessories(self, accessories):
        with pytest.raises(HomebridgeError) as exc_info:
            build_request("server", "deleteCachedAccessories", {"accessories": accessories})
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER
        assert exc_info.value.description == "accessories"

    def test_adapter_without_name(self):
        with pytest.raises(HomebridgeError) as exc_info:
            build_request("server", "setBridgeNetworkInterfaces", {
                "adapters": [{"name": "eth0"}, {"mac": "aa"}],
            })
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER

    def test_download_log_colour_query(self):
        request = build_request("platform", "downloadLogFile", {"colour": "no"})
        assert request.query == {"colour": "no"}

    def test_render_path(self):
        assert render_path("/api/users/{userId}", {"userId": 7}) == "/api/users/7"
