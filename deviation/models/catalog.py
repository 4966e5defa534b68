"""Entity catalogs populated during discovery."""

from dataclasses import dataclass, field
from typing import Iterator

from deviation.models.entities import ItemRecord


class EntityCatalog:
    """Mapping of entity id to display name.

    Ids are unique: adding a known id again only refreshes its name.
    Once frozen (at the end of discovery) the catalog rejects writes so
    comparison workers can read it without coordination.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._frozen = False

    def add(self, entity_id: str, name: str) -> None:
        if self._frozen:
            raise RuntimeError("catalog is frozen")
        self._names[entity_id] = name

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def name_of(self, entity_id: str) -> str | None:
        return self._names.get(entity_id)

    def ids(self) -> list[str]:
        return list(self._names)

    def as_dict(self) -> dict[str, str]:
        return dict(self._names)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __bool__(self) -> bool:
        return bool(self._names)


@dataclass
class ResolvedItem:
    """An item selected for comparison, with the settings of the item
    configuration that matched it."""

    item: ItemRecord
    host_name: str
    postfix: str
    config_index: int


@dataclass
class DiscoveryResult:
    """Catalogs resolved by one discovery run, threaded to later stages."""

    templates: EntityCatalog = field(default_factory=EntityCatalog)
    hosts: EntityCatalog = field(default_factory=EntityCatalog)
    items: list[ResolvedItem] = field(default_factory=list)

    def freeze(self) -> None:
        self.templates.freeze()
        self.hosts.freeze()

    def item_catalog(self) -> dict[str, str]:
        """Item id to item key for every resolved item."""
        return {r.item.item_id: r.item.key for r in self.items}
