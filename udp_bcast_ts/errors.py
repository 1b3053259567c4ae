from __future__ import annotations

EXIT_CODE_HELP = 0
EXIT_CODE_RUNTIME_ERROR = 1
EXIT_CODE_USAGE_ERROR = 2


class BroadcastError(Exception):
    """Base class for every failure the broadcaster distinguishes."""

    exit_code: int | None = None


class UsageError(BroadcastError):
    """Bad or missing command-line argument. Raised before any socket exists."""

    exit_code = EXIT_CODE_USAGE_ERROR

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class FatalBroadcastError(BroadcastError):
    """Unrecoverable condition; the process terminates with the runtime error code."""

    exit_code = EXIT_CODE_RUNTIME_ERROR


class SocketSetupError(FatalBroadcastError):
    pass


class ClockError(FatalBroadcastError):
    pass


class TimestampOverflowError(ClockError):
    pass


class TransientSendError(BroadcastError):
    """A single send failed. The loop logs it and carries on with the next cycle."""


class HelpRequested(Exception):
    exit_code = EXIT_CODE_HELP

    def __init__(self, help_text: str) -> None:
        super().__init__("help requested")
        self.help_text = help_text
