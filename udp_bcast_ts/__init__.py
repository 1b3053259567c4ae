from .broadcaster import (
    TimestampBroadcaster,
    current_unix_ms,
    decode_timestamp,
    encode_timestamp,
    open_broadcast_socket,
)
from .config import build_parser, resolve_config
from .errors import (
    BroadcastError,
    ClockError,
    FatalBroadcastError,
    HelpRequested,
    SocketSetupError,
    TimestampOverflowError,
    TransientSendError,
    UsageError,
)
from .models import BroadcastConfig, BroadcastStats

__version__ = "0.1.0"

__all__ = [
    "BroadcastConfig",
    "BroadcastError",
    "BroadcastStats",
    "ClockError",
    "FatalBroadcastError",
    "HelpRequested",
    "SocketSetupError",
    "TimestampBroadcaster",
    "TimestampOverflowError",
    "TransientSendError",
    "UsageError",
    "build_parser",
    "current_unix_ms",
    "decode_timestamp",
    "encode_timestamp",
    "open_broadcast_socket",
    "resolve_config",
]
