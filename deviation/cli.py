"""Command line entry point: one week-over-week deviation pass."""

import argparse
import logging
import sys
from dataclasses import replace

from deviation.config import ConfigurationError, get_settings, load_configuration
from deviation.features import AuthenticationError, get_reader
from deviation.runner import run

EXIT_OK = 0
EXIT_INCOMPLETE = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3

logger = logging.getLogger("deviation.cli")


def configure_logging(verbose: bool = False) -> None:
    """Log to stderr so stdout stays reserved for ingestion lines."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zabbix-deviation",
        description=(
            "Compare the latest value of discovered Zabbix items with the same "
            "time of day in previous weeks and print trapper ingestion lines."
        ),
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="YAML run configuration (default: $DEVIATION_CONFIG)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default="-",
        help="file to write ingestion lines to, '-' for stdout (default)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="number of items compared concurrently",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="exit with status 1 when any item produced no line",
    )
    parser.add_argument(
        "--print-sender-command",
        action="store_true",
        help="print the zabbix_sender command that ingests the output and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    settings = get_settings()
    if args.workers is not None:
        settings = replace(settings, max_workers=max(1, args.workers))

    config_path = args.config or settings.config_path
    if not config_path:
        print("missing configuration file. provide option --config", file=sys.stderr)
        return EXIT_CONFIGURATION

    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION

    if args.print_sender_command:
        input_file = "-" if args.output == "-" else args.output
        print(configuration.sender.command(input_file))
        return EXIT_OK

    reader = get_reader(configuration, settings)
    if not reader.username:
        print("missing Zabbix username in configuration or $ZABBIX_USERNAME", file=sys.stderr)
        return EXIT_CONFIGURATION

    logger.info("authenticating against %s", reader.endpoint)
    try:
        reader.login()
    except AuthenticationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_AUTHENTICATION

    try:
        if args.output == "-":
            report = run(configuration, reader, sys.stdout, settings)
        else:
            with open(args.output, "w", encoding="utf-8") as sink:
                report = run(configuration, reader, sink, settings)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION

    if args.strict and not report.complete:
        return EXIT_INCOMPLETE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
