from __future__ import annotations

import argparse
import ipaddress

from .errors import HelpRequested, UsageError
from .models import DEFAULT_INTERVAL_MS, MAX_INTERVAL_MS, MAX_PORT, MIN_PORT, BroadcastConfig

DEFAULT_PROG = "udp-bcast-ts"
HELP_FLAGS = ("-h", "--help")


class _UsageErrorParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message, usage=self.format_help())


def _parse_address(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    # Literal addresses only; hostnames are never resolved.
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid IP address: {value!r}") from None


def _parse_unsigned(value: str, label: str) -> int:
    # Plain ASCII digits only: no sign, whitespace or underscores.
    if not (value.isascii() and value.isdigit()):
        raise argparse.ArgumentTypeError(f"invalid {label}: {value!r}")
    return int(value)


def _parse_port(value: str) -> int:
    port = _parse_unsigned(value, "port")
    if not MIN_PORT <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port out of range ({MIN_PORT}-{MAX_PORT}): {port}")
    return port


def _parse_interval_ms(value: str) -> int:
    interval_ms = _parse_unsigned(value, "interval")
    if interval_ms <= 0:
        raise argparse.ArgumentTypeError(f"interval must be > 0, got {interval_ms}")
    if interval_ms > MAX_INTERVAL_MS:
        raise argparse.ArgumentTypeError(f"interval too large (max {MAX_INTERVAL_MS}): {interval_ms}")
    return interval_ms


def build_parser(prog: str = DEFAULT_PROG) -> argparse.ArgumentParser:
    parser = _UsageErrorParser(
        prog=prog,
        description=(
            "Periodically send the current Unix time in milliseconds as an 8-byte "
            "big-endian UDP datagram to a broadcast or multicast address."
        ),
        epilog=(
            "examples:\n"
            f"  {prog} --addr 255.255.255.255 --port 12321 --interval-ms 1000\n"
            f"  {prog} --addr ff02::1 --port 12321 --interval-ms 500\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        *HELP_FLAGS,
        action="store_true",
        help="Show this help message and exit.",
    )
    parser.add_argument(
        "--addr",
        required=True,
        type=_parse_address,
        metavar="<IPv4-or-IPv6>",
        help="Destination address literal, for example 255.255.255.255 or ff02::1.",
    )
    parser.add_argument(
        "--port",
        required=True,
        type=_parse_port,
        metavar="<1-65535>",
        help="Destination UDP port.",
    )
    parser.add_argument(
        "--interval-ms",
        type=_parse_interval_ms,
        default=DEFAULT_INTERVAL_MS,
        metavar="<ms>",
        help=f"Delay between datagrams in milliseconds (default: {DEFAULT_INTERVAL_MS}).",
    )
    return parser


def resolve_config(argv: list[str], prog: str = DEFAULT_PROG) -> BroadcastConfig:
    """
    Turn raw command-line tokens into a validated BroadcastConfig.

    Raises HelpRequested when -h/--help appears anywhere in argv, regardless of
    the other tokens, and UsageError for any missing, unknown or malformed
    argument.
    """
    parser = build_parser(prog)
    if any(token in HELP_FLAGS for token in argv):
        raise HelpRequested(parser.format_help())

    args = parser.parse_args(argv)
    return BroadcastConfig(
        destination_address=args.addr,
        destination_port=args.port,
        interval_ms=args.interval_ms,
    )
