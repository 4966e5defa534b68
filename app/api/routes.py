"""Deviation API routes."""

import io
import threading
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from deviation.config import ConfigurationError, RunConfiguration, get_settings, load_configuration
from deviation.discovery import discover
from deviation.features import AuthenticationError, MonitoringReader, QueryError, get_reader
from deviation.models import ComparisonResult, DiscoveryResult
from deviation.runner import run

router = APIRouter(tags=["Deviation"])

# Configuration and reader (configured in main.py or lazily from settings)
_configuration: RunConfiguration | None = None
_reader: MonitoringReader | None = None
_reader_lock = threading.Lock()


def get_configuration() -> RunConfiguration:
    """Get the run configuration, loading it from DEVIATION_CONFIG on first use."""
    global _configuration
    if _configuration is None:
        path = get_settings().config_path
        if not path:
            raise HTTPException(status_code=503, detail="No run configuration is set")
        try:
            _configuration = load_configuration(path)
        except ConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))
    return _configuration


def set_configuration(configuration: RunConfiguration | None) -> None:
    """Set the run configuration."""
    global _configuration
    _configuration = configuration


def get_monitoring_reader(
    configuration: RunConfiguration = Depends(get_configuration),
) -> MonitoringReader:
    """Get the reader, logging in to the configured Zabbix API on first use."""
    global _reader
    # Sync endpoints run in a threadpool; log in once
    with _reader_lock:
        if _reader is None:
            reader = get_reader(configuration)
            try:
                reader.login()
            except AuthenticationError as e:
                raise HTTPException(status_code=502, detail=str(e))
            _reader = reader
        return _reader


def set_reader(reader: MonitoringReader | None) -> None:
    """Set the reader instance."""
    global _reader
    with _reader_lock:
        _reader = reader


# --- Response Models ---


class ComparisonResultResponse(BaseModel):
    """Response model for one compared item."""

    host_name: str
    item_key: str
    postfix: str
    item_id: str
    timestamp: int
    deviation: float | None
    current_value: float | None
    historical_mean: float | None
    historical_count: int
    metadata: dict[str, Any]

    @classmethod
    def from_result(cls, result: ComparisonResult) -> "ComparisonResultResponse":
        """Create response from domain model."""
        return cls(**result.to_dict())


class DiscoveryResponse(BaseModel):
    """Response model for resolved catalogs."""

    templates: dict[str, str]
    hosts: dict[str, str]
    items: dict[str, str]

    @classmethod
    def from_discovery(cls, discovery: DiscoveryResult) -> "DiscoveryResponse":
        return cls(
            templates=discovery.templates.as_dict(),
            hosts=discovery.hosts.as_dict(),
            items=discovery.item_catalog(),
        )


class RunResponse(BaseModel):
    """Response model for a completed pass."""

    lines: list[str]
    results: list[ComparisonResultResponse]
    emitted: int
    skipped: int
    expired: int
    discovery: DiscoveryResponse


# --- Endpoints ---


@router.post("/discovery", response_model=DiscoveryResponse)
def run_discovery(
    configuration: RunConfiguration = Depends(get_configuration),
    reader: MonitoringReader = Depends(get_monitoring_reader),
) -> DiscoveryResponse:
    """Resolve templates, hosts and items without comparing anything."""
    try:
        discovery = discover(configuration, reader)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return DiscoveryResponse.from_discovery(discovery)


@router.post("/runs", response_model=RunResponse)
def run_pass(
    configuration: RunConfiguration = Depends(get_configuration),
    reader: MonitoringReader = Depends(get_monitoring_reader),
) -> RunResponse:
    """Run one discovery-and-comparison pass.

    The ingestion lines are returned to the caller; nothing is written
    back to Zabbix.
    """
    sink = io.StringIO()
    try:
        report = run(configuration, reader, sink)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except QueryError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return RunResponse(
        lines=sink.getvalue().splitlines(),
        results=[ComparisonResultResponse.from_result(r) for r in report.results],
        emitted=report.emitted,
        skipped=report.skipped,
        expired=report.expired,
        discovery=DiscoveryResponse.from_discovery(report.discovery),
    )
