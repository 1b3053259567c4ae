import ipaddress

import pytest

from udp_bcast_ts.config import build_parser, resolve_config
from udp_bcast_ts.errors import HelpRequested, UsageError
from udp_bcast_ts.models import MAX_INTERVAL_MS, BroadcastConfig


def test_resolves_ipv4_broadcast_with_default_interval():
    config = resolve_config(["--addr", "255.255.255.255", "--port", "12321"])
    assert config.destination_address == ipaddress.IPv4Address("255.255.255.255")
    assert config.destination_port == 12321
    assert config.interval_ms == 1000
    assert config.is_ipv4
    assert config.interval_seconds == 1.0
    assert config.destination_text == "255.255.255.255:12321"


def test_resolves_ipv6_multicast_with_interval():
    config = resolve_config(["--addr", "ff02::1", "--port", "12321", "--interval-ms", "500"])
    assert config.destination_address == ipaddress.IPv6Address("ff02::1")
    assert config.interval_ms == 500
    assert not config.is_ipv4
    assert config.destination_text == "[ff02::1]:12321"


def test_accepts_equals_form_and_any_order():
    config = resolve_config(["--interval-ms=250", "--port=1", "--addr=10.0.0.255"])
    assert config == BroadcastConfig(ipaddress.ip_address("10.0.0.255"), 1, 250)


@pytest.mark.parametrize(
    "argv",
    [
        ["--help"],
        ["-h"],
        ["--addr", "255.255.255.255", "--port", "12321", "--help"],
        ["--port", "0", "-h"],
        ["--addr", "not-an-ip", "--bogus", "--help"],
    ],
)
def test_help_short_circuits_validation(argv):
    with pytest.raises(HelpRequested) as excinfo:
        resolve_config(argv, prog="tool")
    assert "--addr" in excinfo.value.help_text
    assert "tool --addr 255.255.255.255 --port 12321" in excinfo.value.help_text


@pytest.mark.parametrize(
    "argv, fragment",
    [
        ([], "--addr"),
        (["--port", "12321"], "--addr"),
        (["--addr", "255.255.255.255"], "--port"),
        (["--addr", "255.255.255.255", "--port", "0"], "--port"),
        (["--addr", "255.255.255.255", "--port", "-1"], "--port"),
        (["--addr", "255.255.255.255", "--port", "65536"], "--port"),
        (["--addr", "255.255.255.255", "--port", "abc"], "--port"),
        (["--addr", "localhost", "--port", "12321"], "--addr"),
        (["--addr", "256.1.1.1", "--port", "12321"], "--addr"),
        (["--addr", "", "--port", "12321"], "--addr"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", "0"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", "-5"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", "soon"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--verbose"], "--verbose"),
        (["--add", "255.255.255.255", "--port", "12321"], "--add"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", str(MAX_INTERVAL_MS + 1)], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", "10000000000000000000000"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "12321", "--interval-ms", "1_000"], "--interval-ms"),
        (["--addr", "255.255.255.255", "--port", "+80"], "--port"),
        (["--addr", "255.255.255.255", "--port", " 80 "], "--port"),
        (["--addr", " 10.0.0.1 ", "--port", "12321"], "--addr"),
    ],
)
def test_rejects_malformed_arguments(argv, fragment):
    with pytest.raises(UsageError) as excinfo:
        resolve_config(argv)
    assert fragment in str(excinfo.value)
    assert excinfo.value.exit_code == 2
    assert "usage:" in excinfo.value.usage


def test_parser_lists_every_flag():
    help_text = build_parser("udp-bcast-ts").format_help()
    for flag in ("--addr", "--port", "--interval-ms", "--help"):
        assert flag in help_text


@pytest.mark.parametrize(
    "kwargs",
    [
        {"destination_address": "255.255.255.255", "destination_port": 1},
        {"destination_address": ipaddress.ip_address("10.0.0.1"), "destination_port": 0},
        {"destination_address": ipaddress.ip_address("10.0.0.1"), "destination_port": 70000},
        {"destination_address": ipaddress.ip_address("10.0.0.1"), "destination_port": 1, "interval_ms": 0},
        {"destination_address": ipaddress.ip_address("10.0.0.1"), "destination_port": 1, "interval_ms": MAX_INTERVAL_MS + 1},
    ],
)
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        BroadcastConfig(**kwargs)


def test_config_is_immutable():
    config = BroadcastConfig(ipaddress.ip_address("10.0.0.1"), 9)
    with pytest.raises(AttributeError):
        config.destination_port = 10


def test_accepts_longest_interval():
    config = resolve_config(["--addr", "10.0.0.255", "--port", "9", "--interval-ms", str(MAX_INTERVAL_MS)])
    assert config.interval_ms == MAX_INTERVAL_MS
    assert config.interval_seconds > 0
