"""
shape_evolution/log.py - Default logging configuration

Modules log through ``logging.getLogger(__name__)``; entry points call
``setup_default_logging`` once.
"""
import logging
from typing import Union


def setup_default_logging(level: Union[int, str] = "INFO") -> None:
    """Configure the root logger unless the application already did"""
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), logging.INFO)
    else:
        lvl = int(level)

    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
