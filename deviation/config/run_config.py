"""Run configuration: what to discover and how to compare it.

The YAML document is validated once at load time and turned into frozen
dataclasses. Filter criteria only accept the fields the Zabbix API knows
for each entity kind, and the comparison algorithm is a closed variant
rather than free-form data.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger("deviation.config")


class ConfigurationError(ValueError):
    """Raised for invalid configuration or operator errors."""


class EntityKind(str, Enum):
    """Entity kinds that can be filtered during discovery."""

    TEMPLATE = "template"
    HOST = "host"
    ITEM = "item"


# Recognized filter/search fields per entity kind
FILTER_FIELDS: dict[EntityKind, frozenset[str]] = {
    EntityKind.TEMPLATE: frozenset({"host", "name", "templateid"}),
    EntityKind.HOST: frozenset({"host", "name", "hostid", "status", "available"}),
    EntityKind.ITEM: frozenset(
        {"key_", "name", "itemid", "value_type", "hostid", "delay", "description"}
    ),
}


class AlgorithmKind(str, Enum):
    """Comparison algorithms selectable per item configuration."""

    PAST_WEEKS = "past_weeks"


@dataclass(frozen=True)
class FilterSpec:
    """Exact-match and wildcard-search criteria for one lookup."""

    filter: dict[str, list[str]] = field(default_factory=dict)
    search: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class PastWeeksAlgorithm:
    """Week-over-week comparison parameters.

    ``window`` is the full search window width in seconds; samples are
    searched within half of it on either side of each anchor.
    """

    weeks: int
    window: int

    kind = AlgorithmKind.PAST_WEEKS

    def __post_init__(self) -> None:
        if self.weeks < 1:
            raise ConfigurationError("past_weeks.weeks must be at least 1")
        if self.window < 2:
            raise ConfigurationError("past_weeks.window must be at least 2 seconds")

    @property
    def half_width(self) -> int:
        return self.window // 2


@dataclass(frozen=True)
class ItemConfiguration:
    """Item lookup criteria paired with its comparison algorithm."""

    criteria: FilterSpec
    algorithm: PastWeeksAlgorithm
    postfix: str = ""


@dataclass(frozen=True)
class ApiConfig:
    url: str = "http://127.0.0.1/zabbix"
    username: str = ""
    password: str = ""


@dataclass(frozen=True)
class SenderConfig:
    """Trapper endpoint the produced lines are meant for."""

    host: str = "127.0.0.1"
    port: int = 10051
    binary: str = "zabbix_sender"

    def command(self, input_file: str = "-") -> str:
        """Render the zabbix_sender invocation that ingests our lines."""
        return f"{self.binary} -z {self.host} -p {self.port} -T -i {input_file}"


@dataclass(frozen=True)
class RunConfiguration:
    """Everything a single discovery-and-comparison pass needs."""

    api: ApiConfig = field(default_factory=ApiConfig)
    sender: SenderConfig = field(default_factory=SenderConfig)
    templates: tuple[FilterSpec, ...] = ()
    hosts: tuple[FilterSpec, ...] = ()
    items: tuple[ItemConfiguration, ...] = ()
    process_all_hosts: bool = False


def _parse_criteria(raw: Any, kind: EntityKind, section: str) -> dict[str, list[str]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{section} must be a mapping of field to values")

    allowed = FILTER_FIELDS[kind]
    criteria: dict[str, list[str]] = {}
    for name, values in raw.items():
        if name not in allowed:
            raise ConfigurationError(
                f"unknown {kind.value} field '{name}' in {section}; "
                f"expected one of {sorted(allowed)}"
            )
        if isinstance(values, (str, int)):
            values = [values]
        if not isinstance(values, list) or not values:
            raise ConfigurationError(f"{section}.{name} must be a non-empty list of values")
        criteria[name] = [str(v) for v in values]
    return criteria


def _parse_filter_spec(raw: Any, kind: EntityKind, section: str) -> FilterSpec:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{section} must be a mapping with filter/search")
    unknown = set(raw) - {"filter", "search"}
    if unknown:
        raise ConfigurationError(f"unexpected keys {sorted(unknown)} in {section}")
    return FilterSpec(
        filter=_parse_criteria(raw.get("filter"), kind, f"{section}.filter"),
        search=_parse_criteria(raw.get("search"), kind, f"{section}.search"),
    )


def _parse_int(value: Any, section: str) -> int:
    # bool is an int subclass; floats would truncate silently
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{section} must be an integer, got {value!r}")
    return value


def _parse_mapping(raw: Any, section: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{section} must be a mapping")
    return raw


def _parse_algorithm(raw: Any, section: str) -> PastWeeksAlgorithm:
    if not isinstance(raw, Mapping) or len(raw) != 1:
        raise ConfigurationError(f"{section} must name exactly one algorithm")

    (name, params), = raw.items()
    try:
        kind = AlgorithmKind(name)
    except ValueError:
        raise ConfigurationError(
            f"unknown algorithm '{name}' in {section}; "
            f"expected one of {[k.value for k in AlgorithmKind]}"
        ) from None

    if kind is AlgorithmKind.PAST_WEEKS:
        if not isinstance(params, Mapping):
            raise ConfigurationError(f"{section}.{name} must be a mapping")
        weeks = _parse_int(params.get("weeks", 3), f"{section}.{name}.weeks")
        window = _parse_int(params.get("window", 3600), f"{section}.{name}.window")
        return PastWeeksAlgorithm(weeks=weeks, window=window)
    raise ConfigurationError(f"unsupported algorithm {kind.value}")


def _parse_items(raw: Any) -> tuple[ItemConfiguration, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("items must be a list")

    items = []
    for index, entry in enumerate(raw):
        section = f"items[{index}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{section} must be a mapping")
        criteria = _parse_filter_spec(
            {k: entry[k] for k in ("filter", "search") if k in entry},
            EntityKind.ITEM,
            section,
        )
        algorithm = _parse_algorithm(
            entry.get("algorithm", {"past_weeks": {}}), f"{section}.algorithm"
        )
        items.append(
            ItemConfiguration(
                criteria=criteria,
                algorithm=algorithm,
                postfix=str(entry.get("postfix") or ""),
            )
        )
    return tuple(items)


def _parse_filter_list(raw: Any, kind: EntityKind, section: str) -> tuple[FilterSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError(f"{section} must be a list")
    return tuple(
        _parse_filter_spec(entry, kind, f"{section}[{i}]") for i, entry in enumerate(raw)
    )


def parse_configuration(data: Mapping[str, Any] | None) -> RunConfiguration:
    """Build a validated RunConfiguration from a decoded YAML document.

    Raises:
        ConfigurationError: If any section is malformed
    """
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("configuration root must be a mapping")

    zabbix = _parse_mapping(data.get("zabbix"), "zabbix")
    api_raw = _parse_mapping(zabbix.get("api"), "zabbix.api")
    sender_raw = _parse_mapping(zabbix.get("sender"), "zabbix.sender")

    process_all_hosts = data.get("process_all_hosts")
    if process_all_hosts is None:
        process_all_hosts = False
    if not isinstance(process_all_hosts, bool):
        raise ConfigurationError(
            f"process_all_hosts must be true or false, got {process_all_hosts!r}"
        )

    try:
        sender = SenderConfig(
            host=str(sender_raw.get("host", "127.0.0.1")),
            port=int(sender_raw.get("port", 10051)),
            binary=str(sender_raw.get("binary", "zabbix_sender")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"zabbix.sender: {exc}") from exc

    return RunConfiguration(
        api=ApiConfig(
            url=str(api_raw.get("url", "http://127.0.0.1/zabbix")),
            username=str(api_raw.get("username", "")),
            password=str(api_raw.get("password", "")),
        ),
        sender=sender,
        templates=_parse_filter_list(data.get("templates"), EntityKind.TEMPLATE, "templates"),
        hosts=_parse_filter_list(data.get("hosts"), EntityKind.HOST, "hosts"),
        items=_parse_items(data.get("items")),
        process_all_hosts=process_all_hosts,
    )


def load_configuration(path: str | Path) -> RunConfiguration:
    """Read and validate a YAML run configuration file.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"cannot read configuration {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc

    configuration = parse_configuration(data)
    logger.debug(
        "parsed configuration %s: %d template filters, %d host filters, %d item filters",
        path,
        len(configuration.templates),
        len(configuration.hosts),
        len(configuration.items),
    )
    return configuration
