# This file makes the 'utils' directory a Python package.

"""everywhere utilities."""

from .events import publish, subscribe, unsubscribe

__all__ = [
    "publish",
    "subscribe",
    "unsubscribe",
]
