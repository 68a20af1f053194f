# src/httpdummy/limits.py
"""Open-file limit adjustment.

Concurrency tests open many sockets at once. At startup the server tries to
raise RLIMIT_NOFILE to TARGET_NOFILE and warns when the hard limit stays
below it. Nothing here is fatal.
"""

from __future__ import annotations

import sys

from httpdummy.logging import get_logger

logger = get_logger(__name__)

TARGET_NOFILE = 1_000_000


def raise_nofile_limit(target: int = TARGET_NOFILE) -> tuple[int, int] | None:
    """Try to raise the soft and hard open-file limits to target.

    Returns:
        The (soft, hard) limits in effect afterwards, or None on platforms
        without POSIX resource limits or when the limits cannot be read.
    """
    if sys.platform == "win32":
        return None

    import resource

    try:
        resource.setrlimit(resource.RLIMIT_NOFILE, (target, target))
    except (ValueError, OSError) as e:
        logger.debug("could not raise open file limit", target=target, error=str(e))

    try:
        soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    except OSError as e:
        logger.warning(
            "error getting rlimit, make sure it is big if you want to test concurrency using this tool",
            error=str(e),
        )
        return None

    if hard != resource.RLIM_INFINITY and hard < target:
        logger.warning(
            "open file limit is below target, run as root or raise it via ulimit",
            soft=soft,
            hard=hard,
            target=target,
        )
    return soft, hard
