"""Tests for the Zabbix JSON-RPC reader."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from deviation.config import ApiConfig, RunConfiguration, Settings
from deviation.features import (
    AuthenticationError,
    InMemoryReader,
    QueryError,
    ZabbixAPIReader,
    get_reader,
)
from deviation.models import ValueType

TOKEN = "0424bd59b807674191e7d77572075f33"


def _response(body: object) -> MagicMock:
    response = MagicMock()
    response.json.return_value = body
    return response


def _ok(result: object) -> MagicMock:
    return _response({"jsonrpc": "2.0", "result": result, "id": 1})


def _payloads(post: MagicMock) -> list[dict]:
    return [json.loads(call.kwargs["data"]) for call in post.call_args_list]


@pytest.fixture
def post():
    with patch("deviation.features.zabbix_reader.requests.post") as mock_post:
        yield mock_post


@pytest.fixture
def reader() -> ZabbixAPIReader:
    return ZabbixAPIReader("http://zbx.example.com/zabbix/", "reader", "secret", timeout_ms=2500)


class TestLogin:
    """Tests for the login handshake."""

    def test_endpoint_gets_api_path(self, reader: ZabbixAPIReader) -> None:
        assert reader.endpoint == "http://zbx.example.com/zabbix/api_jsonrpc.php"

    def test_endpoint_already_complete(self) -> None:
        reader = ZabbixAPIReader("http://zbx/api_jsonrpc.php")
        assert reader.endpoint == "http://zbx/api_jsonrpc.php"

    def test_recent_server_uses_username_field(
        self, post: MagicMock, reader: ZabbixAPIReader
    ) -> None:
        post.side_effect = [_ok("6.0.21"), _ok(TOKEN)]

        assert reader.login() == TOKEN

        version_call, login_call = _payloads(post)
        assert version_call["method"] == "apiinfo.version"
        assert "auth" not in version_call
        assert login_call["method"] == "user.login"
        assert login_call["params"] == {"username": "reader", "password": "secret"}
        assert reader.token == TOKEN
        assert reader.server_version == "6.0.21"

    def test_old_server_uses_user_field(self, post: MagicMock, reader: ZabbixAPIReader) -> None:
        post.side_effect = [_ok("5.0.3"), _ok(TOKEN)]

        reader.login()

        assert _payloads(post)[1]["params"] == {"user": "reader", "password": "secret"}

    def test_request_shape(self, post: MagicMock, reader: ZabbixAPIReader) -> None:
        post.side_effect = [_ok("6.4.0"), _ok(TOKEN)]

        reader.login()

        call = post.call_args_list[0]
        assert call.args == ("http://zbx.example.com/zabbix/api_jsonrpc.php",)
        assert call.kwargs["headers"] == {"Content-Type": "application/json-rpc"}
        assert call.kwargs["timeout"] == 2.5
        first, second = _payloads(post)
        assert first["jsonrpc"] == "2.0"
        assert second["id"] == first["id"] + 1

    def test_rejected_credentials(self, post: MagicMock, reader: ZabbixAPIReader) -> None:
        post.side_effect = [
            _ok("6.0.0"),
            _response(
                {
                    "jsonrpc": "2.0",
                    "error": {
                        "code": -32602,
                        "message": "Invalid params.",
                        "data": "Incorrect user name or password.",
                    },
                    "id": 2,
                }
            ),
        ]

        with pytest.raises(AuthenticationError, match="Incorrect user name"):
            reader.login()
        assert reader.token is None

    def test_short_token_rejected(self, post: MagicMock, reader: ZabbixAPIReader) -> None:
        post.side_effect = [_ok("6.0.0"), _ok("abc")]

        with pytest.raises(AuthenticationError, match="no session token"):
            reader.login()

    def test_unreachable_server(self, post: MagicMock, reader: ZabbixAPIReader) -> None:
        post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(AuthenticationError, match="connection refused"):
            reader.login()


class TestQueries:
    """Tests for the *.get queries."""

    @pytest.fixture
    def session(self, post: MagicMock, reader: ZabbixAPIReader) -> ZabbixAPIReader:
        post.side_effect = [_ok("6.0.0"), _ok(TOKEN)]
        reader.login()
        post.reset_mock(side_effect=True)
        return reader

    def test_history_query_parameters(self, post: MagicMock, session: ZabbixAPIReader) -> None:
        post.return_value = _ok(
            [
                {"itemid": "23296", "clock": "1700000100", "value": "0.25", "ns": "12"},
                {"itemid": "23296", "clock": "1700000040", "value": "0.5", "ns": "0"},
            ]
        )

        samples = session.query_history("23296", ValueType.FLOAT, 1700000000, 1700000200)

        payload = _payloads(post)[0]
        assert payload["method"] == "history.get"
        assert payload["auth"] == TOKEN
        assert payload["params"] == {
            "output": "extend",
            "history": 0,
            "itemids": ["23296"],
            "time_from": 1700000000,
            "time_till": 1700000200,
            "sortfield": "clock",
            "sortorder": "DESC",
        }
        assert [(s.clock, s.value, s.ns) for s in samples] == [
            (1700000100, "0.25", 12),
            (1700000040, "0.5", 0),
        ]

    def test_host_query_with_templates_and_search(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _ok([{"hostid": "10084", "host": "web1", "name": "Web server"}])

        hosts = session.query_hosts(["10001"], search={"host": ["web*"]})

        params = _payloads(post)[0]["params"]
        assert params["templateids"] == ["10001"]
        assert params["search"] == {"host": ["web*"]}
        assert params["searchWildcardsEnabled"] is True
        assert "filter" not in params
        assert hosts[0].host_id == "10084"
        assert hosts[0].name == "web1"

    def test_unscoped_item_query_has_no_hostids(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _ok(
            [{"itemid": "1", "hostid": "10084", "key_": "cpu.load", "value_type": "3"}]
        )

        items = session.query_items(None, filter={"key_": ["cpu.load"]})

        params = _payloads(post)[0]["params"]
        assert "hostids" not in params
        assert params["filter"] == {"key_": ["cpu.load"]}
        assert items[0].value_type is ValueType.UNSIGNED

    def test_unknown_value_type_is_not_numeric(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _ok(
            [
                {"itemid": "1", "hostid": "10084", "key_": "cpu.load", "value_type": "0"},
                {"itemid": "2", "hostid": "10084", "key_": "dump", "value_type": "5"},
                {"itemid": "3", "hostid": "10084", "key_": "later", "value_type": "17"},
            ]
        )

        items = session.query_items(["10084"])

        assert [i.value_type for i in items] == [
            ValueType.FLOAT,
            ValueType.BINARY,
            ValueType.UNKNOWN,
        ]
        assert [i.value_type.is_numeric for i in items] == [True, False, False]

    def test_empty_result_is_not_an_error(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _ok([])
        assert session.query_templates({"host": ["none"]}) == []

    def test_api_error_raises_query_error(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _response(
            {"jsonrpc": "2.0", "error": {"code": -32500, "message": "Application error."}}
        )
        with pytest.raises(QueryError, match="-32500"):
            session.query_items(["10084"])

    def test_malformed_record_raises_query_error(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        post.return_value = _ok([{"hostid": "10084"}])
        with pytest.raises(QueryError, match="malformed"):
            session.query_items(["10084"])

    def test_invalid_json_raises_query_error(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        response = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        post.return_value = response
        with pytest.raises(QueryError, match="invalid JSON"):
            session.query_templates()

    def test_http_error_raises_query_error(
        self, post: MagicMock, session: ZabbixAPIReader
    ) -> None:
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("502 Bad Gateway")
        post.return_value = response
        with pytest.raises(QueryError, match="502"):
            session.query_hosts()


class TestInMemoryReader:
    """Tests for the in-memory reader's matching."""

    def test_search_is_case_insensitive_substring(self) -> None:
        reader = InMemoryReader(hosts=[{"hostid": "1", "host": "Web-Frontend"}])
        assert [h.host_id for h in reader.query_hosts(search={"host": ["front"]})] == ["1"]

    def test_wildcard_search_is_anchored(self) -> None:
        reader = InMemoryReader(hosts=[{"hostid": "1", "host": "db-web"}])
        assert reader.query_hosts(search={"host": ["web*"]}) == []

    def test_history_is_newest_first(self) -> None:
        reader = InMemoryReader(
            history={"I1": [{"clock": "10", "value": "1"}, {"clock": "30", "value": "3"}]}
        )
        samples = reader.query_history("I1", ValueType.FLOAT, 0, 100)
        assert [s.clock for s in samples] == [30, 10]


class TestGetReader:
    """Tests for reader construction from configuration."""

    def test_environment_overrides_yaml(self) -> None:
        configuration = RunConfiguration(
            api=ApiConfig(url="http://yaml/zabbix", username="yaml-user", password="yaml-pw")
        )
        settings = Settings(zabbix_url="http://env/zabbix", zabbix_password="env-pw")

        reader = get_reader(configuration, settings)

        assert reader.endpoint == "http://env/zabbix/api_jsonrpc.php"
        assert reader.username == "yaml-user"
        assert reader.password == "env-pw"
