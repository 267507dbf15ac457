"""Pure state-transition functions for the session store."""

from .network import network_reducer
from .sessions import sessions_reducer
from .installed_protocols import installed_protocols_reducer

__all__ = ["network_reducer", "sessions_reducer", "installed_protocols_reducer"]
