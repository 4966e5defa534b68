"""Monitoring backend readers."""

from deviation.features.zabbix_reader import (
    AuthenticationError,
    InMemoryReader,
    MonitoringReader,
    QueryError,
    ZabbixAPIReader,
    get_reader,
)

__all__ = [
    "AuthenticationError",
    "InMemoryReader",
    "MonitoringReader",
    "QueryError",
    "ZabbixAPIReader",
    "get_reader",
]
