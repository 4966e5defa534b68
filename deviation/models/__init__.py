"""Deviation models module."""

from deviation.models.catalog import DiscoveryResult, EntityCatalog, ResolvedItem
from deviation.models.comparison import ComparisonResult
from deviation.models.entities import HostRecord, ItemRecord, TemplateRecord, ValueType
from deviation.models.sample import Sample, TimeWindow

__all__ = [
    # Discovery
    "DiscoveryResult",
    "EntityCatalog",
    "ResolvedItem",
    # Entities
    "HostRecord",
    "ItemRecord",
    "TemplateRecord",
    "ValueType",
    # History
    "Sample",
    "TimeWindow",
    # Results
    "ComparisonResult",
]
