"""Shared fixtures."""

import time
from typing import Any

import pytest

from deviation.config import (
    FilterSpec,
    ItemConfiguration,
    PastWeeksAlgorithm,
    RunConfiguration,
    Settings,
    configure,
    reset_settings,
)
from deviation.features import InMemoryReader

ONE_WEEK = 7 * 24 * 3600


@pytest.fixture(autouse=True)
def default_settings():
    """Isolate tests from the process environment."""
    configure(Settings())
    yield
    reset_settings()


def history_row(clock: int, value: str, ns: int = 0) -> dict[str, Any]:
    return {"clock": str(clock), "ns": str(ns), "value": value}


@pytest.fixture
def now() -> int:
    return int(time.time())


def monitored_data(now: int) -> dict[str, Any]:
    """Two hosts (one linked to a template), one numeric and one text item each."""
    current = now - 30
    return dict(
        templates=[
            {"templateid": "T1", "host": "Template OS Linux", "name": "Template OS Linux"},
            {"templateid": "T2", "host": "Template DB", "name": "Template DB"},
        ],
        hosts=[
            {"hostid": "H1", "host": "web1", "name": "Web 1", "templateids": ["T1"]},
            {"hostid": "H2", "host": "db1", "name": "DB 1", "templateids": []},
        ],
        items=[
            {"itemid": "I1", "hostid": "H1", "key_": "cpu.load", "value_type": "0", "name": "CPU"},
            {"itemid": "I2", "hostid": "H2", "key_": "cpu.load", "value_type": "3", "name": "CPU"},
            {"itemid": "I3", "hostid": "H1", "key_": "agent.version", "value_type": "1"},
        ],
        history={
            "I1": [
                history_row(current, "12.5"),
                history_row(current - ONE_WEEK + 10, "10"),
            ],
            "I2": [],
        },
    )


@pytest.fixture
def monitored_reader(now: int) -> InMemoryReader:
    return InMemoryReader(**monitored_data(now))


@pytest.fixture
def web_configuration() -> RunConfiguration:
    """Template T1 plus a direct host filter that also matches web1."""
    return RunConfiguration(
        templates=(FilterSpec(filter={"host": ["Template OS Linux"]}),),
        hosts=(FilterSpec(search={"host": ["web*"]}),),
        items=(
            ItemConfiguration(
                criteria=FilterSpec(filter={"key_": ["cpu.load"]}),
                algorithm=PastWeeksAlgorithm(weeks=2, window=3600),
                postfix=".wow",
            ),
        ),
    )
