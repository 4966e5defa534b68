"""Discovery pipeline: templates -> hosts -> items.

Each stage feeds the ids it resolved into the next one. A failing query
is logged and the stage continues with what it has; only the absence of
any host without the explicit process-all opt-in stops the run.
"""

import logging

from deviation.config.run_config import ConfigurationError, RunConfiguration
from deviation.features.zabbix_reader import MonitoringReader, QueryError
from deviation.models.catalog import DiscoveryResult, EntityCatalog, ResolvedItem
from deviation.models.entities import ItemRecord

logger = logging.getLogger("deviation.discovery")


def discover_templates(configuration: RunConfiguration, reader: MonitoringReader) -> EntityCatalog:
    catalog = EntityCatalog()
    for index, spec in enumerate(configuration.templates):
        try:
            templates = reader.query_templates(spec.filter, spec.search)
        except QueryError as exc:
            logger.error("template filter %d failed: %s", index, exc)
            continue
        if not templates:
            logger.info("template filter %d matched nothing", index)
        for template in templates:
            catalog.add(template.template_id, template.name)
    logger.info("resolved %d templates", len(catalog))
    return catalog


def discover_hosts(
    configuration: RunConfiguration,
    reader: MonitoringReader,
    templates: EntityCatalog,
) -> EntityCatalog:
    """Union of hosts linked to the known templates and hosts matched directly."""
    catalog = EntityCatalog()

    if templates:
        try:
            for host in reader.query_hosts(templates.ids()):
                catalog.add(host.host_id, host.name)
        except QueryError as exc:
            logger.error("host lookup by template failed: %s", exc)

    for index, spec in enumerate(configuration.hosts):
        try:
            hosts = reader.query_hosts(None, spec.filter, spec.search)
        except QueryError as exc:
            logger.error("host filter %d failed: %s", index, exc)
            continue
        if not hosts:
            logger.info("host filter %d matched nothing", index)
        for host in hosts:
            catalog.add(host.host_id, host.name)

    logger.info("resolved %d hosts", len(catalog))
    return catalog


def _complete_host_names(
    reader: MonitoringReader, hosts: EntityCatalog, items: list[ItemRecord]
) -> None:
    # Unscoped item lookups can reach hosts discovery never saw
    missing = sorted({item.host_id for item in items if item.host_id not in hosts})
    if not missing:
        return
    try:
        for host in reader.query_hosts(None, {"hostid": missing}):
            hosts.add(host.host_id, host.name)
    except QueryError as exc:
        logger.error("host name lookup for %d hosts failed: %s", len(missing), exc)


def discover_items(
    configuration: RunConfiguration,
    reader: MonitoringReader,
    hosts: EntityCatalog,
) -> list[ResolvedItem]:
    """Resolve items for every item configuration.

    Raises:
        ConfigurationError: If no host was resolved and processing all
            hosts was not explicitly enabled
    """
    if not hosts:
        if not configuration.process_all_hosts:
            raise ConfigurationError(
                "no hosts matched the template and host filters; "
                "set process_all_hosts to query items on every host"
            )
        logger.warning("no hosts resolved, querying items on all hosts")
        host_ids = None
    else:
        host_ids = hosts.ids()

    resolved: list[ResolvedItem] = []
    for index, item_config in enumerate(configuration.items):
        criteria = item_config.criteria
        try:
            items = reader.query_items(host_ids, criteria.filter, criteria.search)
        except QueryError as exc:
            logger.error("item filter %d failed: %s", index, exc)
            continue
        if not items:
            logger.warning("item filter %d matched no items", index)
            continue

        if host_ids is None:
            _complete_host_names(reader, hosts, items)

        for item in items:
            if not item.value_type.is_numeric:
                logger.info(
                    "skipping item %s (%s): value type %s is not numeric",
                    item.item_id,
                    item.key,
                    item.value_type.name,
                )
                continue
            host_name = hosts.name_of(item.host_id)
            if host_name is None:
                logger.warning("skipping item %s: unknown host %s", item.item_id, item.host_id)
                continue
            resolved.append(
                ResolvedItem(
                    item=item,
                    host_name=host_name,
                    postfix=item_config.postfix,
                    config_index=index,
                )
            )

    if not resolved:
        logger.warning("no items resolved")
    else:
        logger.info("resolved %d items", len(resolved))
    return resolved


def discover(configuration: RunConfiguration, reader: MonitoringReader) -> DiscoveryResult:
    """Run all discovery stages in order and return frozen catalogs.

    Raises:
        ConfigurationError: If no host was resolved without process_all_hosts
    """
    templates = discover_templates(configuration, reader)
    hosts = discover_hosts(configuration, reader, templates)
    items = discover_items(configuration, reader, hosts)

    result = DiscoveryResult(templates=templates, hosts=hosts, items=items)
    result.freeze()
    return result
