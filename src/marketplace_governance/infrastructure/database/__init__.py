"""Database infrastructure — engine, ORM models, and the SQL store."""

from marketplace_governance.infrastructure.database.engine import (
    close_db,
    get_async_session,
    init_db,
)
from marketplace_governance.infrastructure.database.orm_models import (
    AdRecord,
    Base,
    LifecycleEventRecord,
    TransactionRecord,
)
from marketplace_governance.infrastructure.database.repositories import SqlLifecycleStore

__all__ = [
    "AdRecord",
    "Base",
    "LifecycleEventRecord",
    "TransactionRecord",
    "SqlLifecycleStore",
    "get_async_session",
    "init_db",
    "close_db",
]
