"""Core application modules."""
from inventra.core.config import settings, get_settings
from inventra.core.database import (
    Base,
    get_db,
    get_engine,
    get_session_factory,
    run_in_transaction,
    init_db,
    close_db,
)
from inventra.core.security import (
    Actor,
    create_access_token,
    get_current_actor,
    require_role,
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "get_engine",
    "get_session_factory",
    "run_in_transaction",
    "init_db",
    "close_db",
    "Actor",
    "create_access_token",
    "get_current_actor",
    "require_role",
]
