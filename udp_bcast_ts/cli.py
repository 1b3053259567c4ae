from __future__ import annotations

import logging
import os
import sys

from .broadcaster import TimestampBroadcaster
from .config import DEFAULT_PROG, resolve_config
from .errors import FatalBroadcastError, HelpRequested, UsageError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def _program_name(argv0: str | None) -> str:
    if not argv0:
        return DEFAULT_PROG
    name = os.path.basename(argv0)
    if name in ("__main__.py", "-c", ""):
        return DEFAULT_PROG
    return name


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        prog = _program_name(sys.argv[0] if sys.argv else None)
        argv = sys.argv[1:]
    else:
        prog = DEFAULT_PROG

    try:
        config = resolve_config(argv, prog=prog)
    except HelpRequested as request:
        print(request.help_text, end="")
        return request.exit_code
    except UsageError as exc:
        print(f"{exc}\n{exc.usage}", file=sys.stderr, end="")
        return exc.exit_code

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    broadcaster: TimestampBroadcaster | None = None
    try:
        broadcaster = TimestampBroadcaster.open(config)
        with broadcaster:
            broadcaster.run()
    except FatalBroadcastError as exc:
        logger.error("%s", exc)
        return exc.exit_code
    except KeyboardInterrupt:
        if broadcaster is not None:
            stats = broadcaster.stats()
            logger.info("Stopped after %d sends (%d failed)", stats.sent_count, stats.failed_count)
        return 0
    return 0
