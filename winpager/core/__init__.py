"""Core interfaces and dependency injection.

``AppContainer`` lives in :mod:`winpager.core.di_container`; it is not
re-exported here because the services it wires import these protocols.
"""

from .protocols import (
    BACKWARD,
    FORWARD,
    PageResult,
    PageSource,
    SnapshotStorePort,
    ViewportPort,
)

__all__ = [
    "BACKWARD",
    "FORWARD",
    "PageResult",
    "PageSource",
    "SnapshotStorePort",
    "ViewportPort",
]
