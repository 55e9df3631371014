"""Manager classes for paging and viewport state."""

from .paging_state_manager import PagingStateManager
from .viewport_coordinator import ViewportCoordinator

__all__ = [
    "PagingStateManager",
    "ViewportCoordinator",
]
