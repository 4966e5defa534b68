"""Trapper ingestion line formatting."""

from deviation.models.comparison import ComparisonResult


def format_line(
    host_name: str,
    item_key: str,
    postfix: str,
    timestamp: int,
    deviation: float,
) -> str:
    """Render one ingestion line.

    Format: ``"<host>" <key><postfix> <clock> <value>`` followed by a
    newline, as read by ``zabbix_sender -T -i``. The host name is quoted
    verbatim; embedded quotes are not escaped.
    """
    return f'"{host_name}" {item_key}{postfix} {int(timestamp)} {deviation:f}\n'


def format_result(result: ComparisonResult) -> str:
    return format_line(
        result.host_name,
        result.item_key,
        result.postfix,
        result.timestamp,
        result.deviation,
    )
