"""
Zabbix Data Reader

Read access to Zabbix templates, hosts, items and history for the
deviation pipeline.

DESIGN RULES:
- Read-only: only *.get methods (plus the login handshake)
- One JSON-RPC request per query, no retries
- Every request carries a timeout
- Transport, payload and API errors surface as QueryError; an empty
  result is a normal answer, never an error
"""

import copy
import fnmatch
import itertools
import json
import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

import requests

from deviation.config.run_config import RunConfiguration
from deviation.config.settings import Settings, get_settings
from deviation.models.entities import HostRecord, ItemRecord, TemplateRecord, ValueType
from deviation.models.sample import Sample

logger = logging.getLogger("deviation.zabbix")

CONTENT_TYPE = "application/json-rpc"
API_PATH = "/api_jsonrpc.php"

Criteria = Mapping[str, Sequence[str]]


class QueryError(Exception):
    """A query could not be completed (transport, payload or API error)."""


class AuthenticationError(QueryError):
    """The login handshake failed."""


class MonitoringReader(ABC):
    """
    Abstract query capability consumed by discovery and sampling.

    Each call is synchronous and returns a (possibly empty) list or
    raises QueryError.
    """

    @abstractmethod
    def query_templates(
        self, filter: Criteria | None = None, search: Criteria | None = None
    ) -> list[TemplateRecord]:
        """Look up templates matching exact and wildcard criteria."""
        ...

    @abstractmethod
    def query_hosts(
        self,
        template_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[HostRecord]:
        """Look up hosts, optionally restricted to hosts linked to templates."""
        ...

    @abstractmethod
    def query_items(
        self,
        host_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[ItemRecord]:
        """Look up items; ``host_ids=None`` means no host scoping at all."""
        ...

    @abstractmethod
    def query_history(
        self, item_id: str, value_type: ValueType, time_from: int, time_till: int
    ) -> list[Sample]:
        """Read history samples of one item within [time_from, time_till]."""
        ...


# --- Result parsing shared by all readers ---


def _parse_templates(result: Any) -> list[TemplateRecord]:
    return [
        TemplateRecord(template_id=str(r["templateid"]), name=r.get("name") or r.get("host", ""))
        for r in result
    ]


def _parse_hosts(result: Any) -> list[HostRecord]:
    # The technical host name is what the trapper matches on
    return [
        HostRecord(host_id=str(r["hostid"]), name=r.get("host") or r.get("name", ""))
        for r in result
    ]


def _parse_items(result: Any) -> list[ItemRecord]:
    return [
        ItemRecord(
            item_id=str(r["itemid"]),
            host_id=str(r["hostid"]),
            key=r["key_"],
            value_type=ValueType(int(r.get("value_type", 0))),
            name=r.get("name", ""),
        )
        for r in result
    ]


def _parse_history(result: Any) -> list[Sample]:
    return [
        Sample(
            item_id=str(r["itemid"]),
            value=str(r["value"]),
            clock=int(r["clock"]),
            ns=int(r.get("ns", 0)),
        )
        for r in result
    ]


def _parse(parser, method: str, result: Any) -> list:
    if not isinstance(result, list):
        raise QueryError(f"{method}: expected a result list, got {type(result).__name__}")
    try:
        return parser(result)
    except (KeyError, TypeError, ValueError) as exc:
        raise QueryError(f"{method}: malformed result record: {exc!r}") from exc


def _criteria_params(filter: Criteria | None, search: Criteria | None) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if filter:
        params["filter"] = {k: list(v) for k, v in filter.items()}
    if search:
        params["search"] = {k: list(v) for k, v in search.items()}
        params["searchWildcardsEnabled"] = True
    return params


def _version_tuple(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.split("."):
        digits = "".join(itertools.takewhile(str.isdigit, part))
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


class ZabbixAPIReader(MonitoringReader):
    """
    Read Zabbix data via the JSON-RPC web API.

    Call login() once before querying. Request ids come from a counter
    owned by this reader, seeded randomly.
    """

    def __init__(
        self,
        url: str,
        username: str = "",
        password: str = "",
        timeout_ms: int | None = None,
    ):
        settings = get_settings()
        url = url.rstrip("/")
        self.endpoint = url if url.endswith(API_PATH) else url + API_PATH
        self.username = username
        self.password = password
        self.timeout_seconds = (timeout_ms or settings.api_timeout_ms) / 1000.0
        self.token: str | None = None
        self.server_version: str | None = None
        self._request_ids = itertools.count(random.randint(1, 2**31))

    def _call(self, method: str, params: Any, authenticated: bool = True) -> Any:
        """Issue one JSON-RPC request and return its ``result`` member."""
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }
        if authenticated and self.token:
            payload["auth"] = self.token

        logger.debug("zabbix api call %s %s", method, params)
        start = time.monotonic()
        try:
            response = requests.post(
                self.endpoint,
                data=json.dumps(payload),
                headers={"Content-Type": CONTENT_TYPE},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise QueryError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise QueryError(f"{method}: invalid JSON response: {exc}") from exc
        logger.debug("%s answered in %.1f ms", method, (time.monotonic() - start) * 1000)

        if not isinstance(body, dict):
            raise QueryError(f"{method}: unexpected response envelope")
        if "error" in body:
            error = body["error"] or {}
            raise QueryError(
                f"{method}: api error {error.get('code')}: "
                f"{error.get('message', '')} {error.get('data', '')}".rstrip()
            )
        if "result" not in body:
            raise QueryError(f"{method}: response has no result")
        return body["result"]

    def login(self) -> str:
        """Read the server version and authenticate.

        Returns:
            The session token

        Raises:
            AuthenticationError: If the server is unreachable or rejects us
        """
        try:
            self.server_version = str(self._call("apiinfo.version", {}, authenticated=False))
            # Zabbix 5.4 renamed the login parameter
            user_field = "username" if _version_tuple(self.server_version) >= (5, 4) else "user"
            token = self._call(
                "user.login",
                {user_field: self.username, "password": self.password},
                authenticated=False,
            )
        except QueryError as exc:
            raise AuthenticationError(f"login failed: {exc}") from exc

        if not isinstance(token, str) or len(token) < 5:
            raise AuthenticationError("login failed: server returned no session token")
        self.token = token
        logger.info("authenticated against %s (zabbix %s)", self.endpoint, self.server_version)
        return token

    def query_templates(
        self, filter: Criteria | None = None, search: Criteria | None = None
    ) -> list[TemplateRecord]:
        params = {"output": ["templateid", "host", "name"], **_criteria_params(filter, search)}
        templates = _parse(_parse_templates, "template.get", self._call("template.get", params))
        logger.debug("loaded %d templates", len(templates))
        return templates

    def query_hosts(
        self,
        template_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[HostRecord]:
        params: dict[str, Any] = {
            "output": ["hostid", "host", "name"],
            "sortfield": "hostid",
            **_criteria_params(filter, search),
        }
        if template_ids:
            params["templateids"] = list(template_ids)
        hosts = _parse(_parse_hosts, "host.get", self._call("host.get", params))
        logger.debug("loaded %d hosts", len(hosts))
        return hosts

    def query_items(
        self,
        host_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[ItemRecord]:
        params: dict[str, Any] = {
            "output": ["itemid", "hostid", "key_", "value_type", "name"],
            "sortfield": "itemid",
            **_criteria_params(filter, search),
        }
        if host_ids is not None:
            params["hostids"] = list(host_ids)
        items = _parse(_parse_items, "item.get", self._call("item.get", params))
        logger.debug("loaded %d items", len(items))
        return items

    def query_history(
        self, item_id: str, value_type: ValueType, time_from: int, time_till: int
    ) -> list[Sample]:
        params = {
            "output": "extend",
            "history": int(value_type),
            "itemids": [item_id],
            "time_from": int(time_from),
            "time_till": int(time_till),
            "sortfield": "clock",
            "sortorder": "DESC",
        }
        samples = _parse(_parse_history, "history.get", self._call("history.get", params))
        logger.debug("loaded %d samples for item %s", len(samples), item_id)
        return samples


class InMemoryReader(MonitoringReader):
    """
    In-memory reader for testing and offline runs.

    Records use Zabbix field names. Hosts may carry a ``templateids``
    list for template linkage. Every query is recorded in ``calls`` and
    methods listed in ``failing`` raise QueryError.
    """

    def __init__(
        self,
        templates: list[dict[str, Any]] | None = None,
        hosts: list[dict[str, Any]] | None = None,
        items: list[dict[str, Any]] | None = None,
        history: dict[str, list[dict[str, Any]]] | None = None,
        failing: set[str] | None = None,
    ):
        # Store deep copies to prevent external modification
        self._templates = copy.deepcopy(templates) if templates else []
        self._hosts = copy.deepcopy(hosts) if hosts else []
        self._items = copy.deepcopy(items) if items else []
        self._history = copy.deepcopy(history) if history else {}
        self.failing = set(failing or ())
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, method: str, **params: Any) -> None:
        self.calls.append((method, params))
        if method in self.failing:
            raise QueryError(f"{method}: simulated failure")

    @staticmethod
    def _matches(record: Mapping[str, Any], filter: Criteria | None, search: Criteria | None) -> bool:
        for name, accepted in (filter or {}).items():
            if str(record.get(name, "")) not in accepted:
                return False
        for name, patterns in (search or {}).items():
            value = str(record.get(name, "")).lower()
            if not any(InMemoryReader._wildcard_match(value, p) for p in patterns):
                return False
        return True

    @staticmethod
    def _wildcard_match(value: str, pattern: str) -> bool:
        # Like the API: "*" anchors the pattern, plain text is a substring match
        pattern = pattern.lower()
        if "*" not in pattern:
            return pattern in value
        return fnmatch.fnmatchcase(value, pattern)

    def query_templates(
        self, filter: Criteria | None = None, search: Criteria | None = None
    ) -> list[TemplateRecord]:
        self._record("template.get", filter=filter, search=search)
        return _parse_templates([t for t in self._templates if self._matches(t, filter, search)])

    def query_hosts(
        self,
        template_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[HostRecord]:
        self._record("host.get", template_ids=template_ids, filter=filter, search=search)
        selected = []
        for host in self._hosts:
            if template_ids and not set(host.get("templateids", [])) & set(template_ids):
                continue
            if self._matches(host, filter, search):
                selected.append(host)
        return _parse_hosts(selected)

    def query_items(
        self,
        host_ids: Sequence[str] | None = None,
        filter: Criteria | None = None,
        search: Criteria | None = None,
    ) -> list[ItemRecord]:
        self._record("item.get", host_ids=host_ids, filter=filter, search=search)
        selected = [
            i
            for i in self._items
            if (host_ids is None or str(i.get("hostid")) in host_ids)
            and self._matches(i, filter, search)
        ]
        return _parse_items(selected)

    def query_history(
        self, item_id: str, value_type: ValueType, time_from: int, time_till: int
    ) -> list[Sample]:
        self._record(
            "history.get",
            item_id=item_id,
            value_type=value_type,
            time_from=time_from,
            time_till=time_till,
        )
        rows = [
            {"itemid": item_id, **row}
            for row in self._history.get(item_id, [])
            if time_from <= int(row["clock"]) <= time_till
        ]
        rows.sort(key=lambda row: int(row["clock"]), reverse=True)
        return _parse_history(rows)


def get_reader(
    configuration: RunConfiguration, settings: Settings | None = None
) -> ZabbixAPIReader:
    """
    Build an API reader for the configured server.

    Environment settings take precedence over the YAML credentials.
    """
    settings = settings or get_settings()
    return ZabbixAPIReader(
        url=settings.zabbix_url or configuration.api.url,
        username=settings.zabbix_username or configuration.api.username,
        password=settings.zabbix_password or configuration.api.password,
        timeout_ms=settings.api_timeout_ms,
    )
