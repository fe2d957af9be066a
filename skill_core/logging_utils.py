from __future__ import annotations

import logging
import os
from typing import Union

_NOISY_LOGGERS = ("httpx", "httpcore")


def _coerce_verbose(verbose: Union[int, str, None]) -> int:
    try:
        return int(verbose or 0)
    except (TypeError, ValueError):
        return 0


def configure_logging(verbose: Union[int, str, None] = 0) -> None:
    """Configure root logging. Safe to call on every Lambda invocation."""
    level = logging.DEBUG if _coerce_verbose(verbose) >= 1 else logging.INFO

    # LOG_LEVEL from the function configuration wins over VERBOSE.
    env_level = os.environ.get("LOG_LEVEL")
    if env_level:
        level = getattr(logging, env_level.upper(), level)

    # httpx logs every request at INFO; keep it out of skill logs unless debugging.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    root = logging.getLogger()
    if root.handlers:
        # The Lambda runtime installs its own handler; only adjust levels.
        root.setLevel(level)
        for h in root.handlers:
            h.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
