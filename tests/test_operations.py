"""
Unit tests for homebridge_api/operations.py.

Covers the login special case, token chaining from a previous Login step,
metadata and simplification of outputs, and continue-on-failure handling.
"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

import pytest

from homebridge_api.errors import ErrorKind, HomebridgeError
from homebridge_api.operations import execute_items

from .conftest import make_response


class TestLogin:

    def test_login_output(self, raw_credentials):
        with patch("homebridge_api.auth.requests.post") as mock_post:
            mock_post.return_value = make_response(200, {"access_token": "tok123"})
            outputs = execute_items([], "auth", "login", raw_credentials)

        assert len(outputs) == 1
        out = outputs[0]
        assert out["access_token"] == "tok123"
        assert out["token_type"] == "Bearer"
        assert out["_metadata"]["resource"] == "auth"
        assert out["_metadata"]["success"] is True
        assert mock_post.call_args.args[0] == "http://host:8581/api/auth/login"

    def test_login_otp_parameter(self, raw_credentials):
        with patch("homebridge_api.auth.requests.post") as mock_post:
            mock_post.return_value = make_response(200, {"access_token": "t"})
            execute_items([], "auth", "login", raw_credentials, params={"otp": "111222"})
        assert mock_post.call_args.kwargs["json"]["otp"] == "111222"


class TestChainedOperation:

    def test_token_from_login_output(self, raw_credentials):
        login_output = [{"json": {"access_token": "tok123", "token_type": "Bearer"}}]
        with patch("homebridge_api.executor.requests.request") as mock_request:
            mock_request.return_value = make_response(200, [{"uniqueId": "a1", "_id": "x"}])
            outputs = execute_items(login_output, "accessories", "list", raw_credentials)

        args, kwargs = mock_request.call_args
        assert args == ("GET", "http://host:8581/api/accessories")
        assert kwargs["headers"]["Authorization"] == "Bearer tok123"
        # array responses are wrapped, bookkeeping fields stripped
        assert outputs[0]["data"] == [{"uniqueId": "a1"}]
        datetime.fromisoformat(outputs[0]["_metadata"]["executed_at"])

    def test_manual_token_wins(self, raw_credentials):
        with patch("homebridge_api.executor.requests.request") as mock_request:
            mock_request.return_value = make_response(200, {"cpu": 3})
            execute_items(
                [{"json": {"access_token": "upstream"}}], "status", "getCPU", raw_credentials,
                params={"accessToken": "manual"},
            )
        assert mock_request.call_args.kwargs["headers"]["Authorization"] == "Bearer manual"

    def test_simplify_disabled(self, raw_credentials):
        with patch("homebridge_api.executor.requests.request") as mock_request:
            mock_request.return_value = make_response(200, {"_id": "1", "name": "u"})
            outputs = execute_items(
                [], "users", "list", raw_credentials,
                params={"accessToken": "t"}, simplify=False,
            )
        assert outputs[0]["_id"] == "1"

    def test_per_item_parameters(self, raw_credentials):
        items = [{"json": {"access_token": "t"}}, {"json": {}}]
        params = [{"uniqueId": "one"}, {"uniqueId": "two"}]
        with patch("homebridge_api.executor.requests.request") as mock_request:
            mock_request.return_value = make_response(200, {"ok": True})
            outputs = execute_items(items, "accessories", "getAccessory", raw_credentials, params)

        assert len(outputs) == 2
        urls = [c.args[1] for c in mock_request.call_args_list]
        assert urls == [
            "http://host:8581/api/accessories/one",
            "http://host:8581/api/accessories/two",
        ]

    def test_parameter_count_mismatch(self, raw_credentials):
        with pytest.raises(ValueError):
            execute_items([{}, {}], "status", "getCPU", raw_credentials, [{}])


class TestFailureHandling:

    def test_failure_raises_by_default(self, raw_credentials):
        with pytest.raises(HomebridgeError) as exc_info:
            execute_items([{"json": {}}], "status", "getCPU", raw_credentials)
        assert exc_info.value.kind == ErrorKind.NO_ACCESS_TOKEN

    def test_continue_on_fail_records_error(self, raw_credentials):
        items = [{"json": {"access_token": "t"}}, {"json": {}}]
        params = [{"uniqueId": "missing"}, {"uniqueId": "present"}]
        responses = [make_response(404), make_response(200, {"uniqueId": "present"})]
        with patch("homebridge_api.executor.requests.request", side_effect=responses):
            outputs = execute_items(
                items, "accessories", "getAccessory", raw_credentials, params,
                continue_on_fail=True,
            )

        assert outputs[0]["error"] == "Not Found"
        assert outputs[0]["_metadata"]["success"] is False
        assert outputs[0]["_metadata"]["operation"] == "getAccessory"
        assert outputs[1]["uniqueId"] == "present"
        assert outputs[1]["_metadata"]["success"] is True

    def test_missing_credentials_recorded(self):
        outputs = execute_items(
            [{}], "status", "getCPU", {"serverUrl": "http://h"}, continue_on_fail=True,
        )
        assert "Username is required" in outputs[0]["error"]

    def test_malformed_collection_recorded(self, raw_credentials):
        outputs = execute_items(
            [{"json": {"access_token": "t"}}], "server", "deleteCachedAccessories", raw_credentials,
            params={"accessories": [{"cacheFile": "x"}]}, continue_on_fail=True,
        )
        assert outputs[0]["error"] == 'Every entry of "accessories" needs a uuid.'
        assert outputs[0]["_metadata"]["success"] is False

    def test_unexpected_exception_recorded(self, raw_credentials):
        items = [{"json": {"access_token": "t"}}, {"json": {}}]
        responses = [RuntimeError("socket closed"), make_response(200, {"cpu": 3})]
        with patch("homebridge_api.executor.requests.request", side_effect=responses):
            outputs = execute_items(
                items, "status", "getCPU", raw_credentials, continue_on_fail=True,
            )
        assert outputs[0]["error"] == "socket closed"
        assert outputs[1]["cpu"] == 3

    def test_unexpected_exception_raises_by_default(self, raw_credentials):
        with patch("homebridge_api.executor.requests.request", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                execute_items([{"json": {"access_token": "t"}}], "status", "getCPU", raw_credentials)

    def test_unknown_operation(self, raw_credentials):
        with pytest.raises(HomebridgeError) as exc_info:
            execute_items([], "status", "getEverything", raw_credentials, {"accessToken": "t"})
        assert exc_info.value.kind == ErrorKind.UNKNOWN_OPERATION
