"""Monitored entity models returned by discovery lookups."""

from dataclasses import dataclass
from enum import IntEnum


class ValueType(IntEnum):
    """Zabbix item value types (also selects the history table)."""

    FLOAT = 0
    CHARACTER = 1
    LOG = 2
    UNSIGNED = 3
    TEXT = 4
    BINARY = 5
    # Any value type this version does not know about
    UNKNOWN = -1

    @classmethod
    def _missing_(cls, value: object) -> "ValueType":
        return cls.UNKNOWN

    @property
    def is_numeric(self) -> bool:
        return self in (ValueType.FLOAT, ValueType.UNSIGNED)


@dataclass(frozen=True)
class TemplateRecord:
    template_id: str
    name: str


@dataclass(frozen=True)
class HostRecord:
    host_id: str
    name: str


@dataclass(frozen=True)
class ItemRecord:
    """A metric on a host.

    ``host_id`` links the item back to the host catalog; ``key`` is the
    item key used in ingestion lines.
    """

    item_id: str
    host_id: str
    key: str
    value_type: ValueType
    name: str = ""
