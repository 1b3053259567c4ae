from __future__ import annotations

import logging
import socket
import struct
import time
from collections.abc import Callable
from datetime import datetime

from .errors import (
    ClockError,
    FatalBroadcastError,
    SocketSetupError,
    TimestampOverflowError,
    TransientSendError,
)
from .models import BroadcastConfig, BroadcastStats

logger = logging.getLogger(__name__)

# Network byte order, unsigned 64-bit.
TIMESTAMP_FORMAT = "!Q"
TIMESTAMP_SIZE = struct.calcsize(TIMESTAMP_FORMAT)
MAX_TIMESTAMP_MS = 2**64 - 1
NS_PER_MS = 1_000_000

STATE_INITIALIZING = "initializing"
STATE_RUNNING = "running"
STATE_TERMINATED = "terminated"


def format_unix_ms_local(unix_ms: int) -> str:
    try:
        dt = datetime.fromtimestamp(unix_ms / 1000.0)
    except (ValueError, OverflowError, OSError):
        # Outside the range datetime can represent.
        return f"{unix_ms} ms"
    return dt.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def current_unix_ms(clock: Callable[[], int] = time.time_ns) -> int:
    """Milliseconds since the Unix epoch from a nanosecond wall clock."""
    now_ns = clock()
    if now_ns < 0:
        raise ClockError(f"system clock is before the Unix epoch ({now_ns} ns)")
    unix_ms = now_ns // NS_PER_MS
    if unix_ms > MAX_TIMESTAMP_MS:
        raise TimestampOverflowError(f"timestamp {unix_ms} ms does not fit in an unsigned 64-bit value")
    return unix_ms


def encode_timestamp(unix_ms: int) -> bytes:
    if not 0 <= unix_ms <= MAX_TIMESTAMP_MS:
        raise TimestampOverflowError(f"timestamp {unix_ms} ms does not fit in an unsigned 64-bit value")
    return struct.pack(TIMESTAMP_FORMAT, unix_ms)


def decode_timestamp(payload: bytes) -> int:
    if len(payload) != TIMESTAMP_SIZE:
        raise ValueError(f"timestamp payload must be {TIMESTAMP_SIZE} bytes, got {len(payload)}")
    return struct.unpack(TIMESTAMP_FORMAT, payload)[0]


def _wildcard_bind_address(config: BroadcastConfig) -> tuple[str, int]:
    # Port 0 lets the OS pick an ephemeral port.
    return ("0.0.0.0", 0) if config.is_ipv4 else ("::", 0)


def open_broadcast_socket(config: BroadcastConfig) -> socket.socket:
    bind_address = _wildcard_bind_address(config)
    try:
        sock = socket.socket(config.family, socket.SOCK_DGRAM)
    except OSError as exc:
        raise SocketSetupError(f"failed to create UDP socket: {exc}") from exc

    try:
        sock.bind(bind_address)
    except OSError as exc:
        sock.close()
        raise SocketSetupError(f"failed to bind UDP socket on {bind_address[0]}:{bind_address[1]}: {exc}") from exc

    if config.is_ipv4:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError as exc:
            sock.close()
            raise SocketSetupError(f"failed to enable broadcast: {exc}") from exc
    return sock


def resolve_destination(config: BroadcastConfig) -> tuple:
    # AI_NUMERICHOST keeps this a pure parse: no DNS, but IPv6 scope ids are honoured.
    try:
        infos = socket.getaddrinfo(
            str(config.destination_address),
            config.destination_port,
            config.family,
            socket.SOCK_DGRAM,
            0,
            socket.AI_NUMERICHOST,
        )
    except OSError as exc:
        raise SocketSetupError(f"invalid destination {config.destination_text}: {exc}") from exc
    if not infos:
        raise SocketSetupError(f"invalid destination {config.destination_text}")
    return infos[0][4]


class TimestampBroadcaster:
    """
    Owns the UDP socket and drives the send cadence.

    Example:
        with TimestampBroadcaster.open(config) as broadcaster:
            broadcaster.run()
    """

    def __init__(
        self,
        config: BroadcastConfig,
        sock: socket.socket,
        *,
        destination: tuple | None = None,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.config = config
        self.sock = sock
        self.destination = destination if destination is not None else resolve_destination(config)
        self._clock = clock or time.time_ns
        self._sleep = sleep or time.sleep
        self.state = STATE_INITIALIZING

        self.sent_count = 0
        self.failed_count = 0
        self.last_sent_unix_ms: int | None = None
        self.last_error: str | None = None

    @classmethod
    def open(
        cls,
        config: BroadcastConfig,
        *,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> "TimestampBroadcaster":
        sock = open_broadcast_socket(config)
        try:
            broadcaster = cls(config, sock, clock=clock, sleep=sleep)
        except FatalBroadcastError:
            sock.close()
            raise
        broadcaster.state = STATE_RUNNING
        logger.info(
            "Broadcasting to %s every %d ms (broadcast %s)",
            config.destination_text,
            config.interval_ms,
            "enabled" if config.is_ipv4 else "not needed",
        )
        return broadcaster

    def __enter__(self) -> "TimestampBroadcaster":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.sock.close()

    def send_once(self) -> int:
        unix_ms = current_unix_ms(self._clock)
        payload = encode_timestamp(unix_ms)
        try:
            self.sock.sendto(payload, self.destination)
        except OSError as exc:
            raise TransientSendError(f"sendto({self.config.destination_text}) failed: {exc}") from exc
        self.sent_count += 1
        self.last_sent_unix_ms = unix_ms
        logger.info(
            "Sent broadcast to %s ts_ms=%d (%s)",
            self.config.destination_text,
            unix_ms,
            format_unix_ms_local(unix_ms),
        )
        return unix_ms

    def run(self, max_cycles: int | None = None) -> None:
        """
        Send one timestamp per interval until a fatal error.

        Send failures are logged and counted, never raised. Clock errors end the
        loop. The sleep between cycles is a fixed interval with no drift
        compensation. max_cycles bounds the loop for embedding and tests.
        """
        self.state = STATE_RUNNING
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            try:
                self.send_once()
            except TransientSendError as exc:
                self.failed_count += 1
                self.last_error = str(exc)
                logger.warning("%s", exc)
            except FatalBroadcastError:
                self.state = STATE_TERMINATED
                raise

            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            self._sleep(self.config.interval_seconds)

    def stats(self) -> BroadcastStats:
        return BroadcastStats(
            sent_count=self.sent_count,
            failed_count=self.failed_count,
            last_sent_unix_ms=self.last_sent_unix_ms,
            last_error=self.last_error,
        )
