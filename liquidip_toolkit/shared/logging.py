"""
Logging helpers for the LiquidIP toolkit.

Every engine component logs under the ``liquidip`` namespace through a
single stream handler installed on the namespace root, so hosts can silence
or redirect the whole toolkit with one logger. LIQUIDIP_LOG_LEVEL overrides
the default INFO level.
"""

import logging
import os
from typing import Optional

_ROOT_NAME = "liquidip"
_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        root.addHandler(handler)

        level_str = os.getenv("LIQUIDIP_LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, level_str, logging.INFO))
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger below the ``liquidip`` namespace.

    ``get_logger("hooks.lifecycle")`` and
    ``get_logger("liquidip_toolkit.hooks.lifecycle")`` both resolve to
    ``liquidip.hooks.lifecycle``.
    """
    root = _configure_root()
    if not name:
        return root

    if name.startswith("liquidip_toolkit."):
        name = name[len("liquidip_toolkit.") :]
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
