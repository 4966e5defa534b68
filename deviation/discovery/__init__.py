"""Entity discovery module."""

from deviation.discovery.pipeline import (
    discover,
    discover_hosts,
    discover_items,
    discover_templates,
)

__all__ = [
    "discover",
    "discover_hosts",
    "discover_items",
    "discover_templates",
]
