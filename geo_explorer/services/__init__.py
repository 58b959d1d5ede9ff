from geo_explorer.services.explorer_session import (
    ClickOutcome,
    ExplorerMode,
    ExplorerSession,
    ExplorerView,
    SessionRegistry,
    get_session_registry,
)

__all__ = [
    "ClickOutcome",
    "ExplorerMode",
    "ExplorerSession",
    "ExplorerView",
    "SessionRegistry",
    "get_session_registry",
]
