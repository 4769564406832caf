"""Simple logging utilities for langcfg.

All modules log through children of the ``langcfg`` logger. The parent gets a
single stream handler the first time any logger is requested; children
propagate to it.
"""
import logging
from typing import Optional

ROOT_LOGGER = "langcfg"


def configure(level: Optional[str] = None) -> logging.Logger:
    """Attach the stream handler to the root langcfg logger (once)."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(fmt)
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    if level:
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    configure()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
