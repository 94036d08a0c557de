"""Database infrastructure: declarative base and engine/session management."""

from marketplace_kernel.db.base import Base, TrackedBase, UUIDString
from marketplace_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
