from .assessment_session import CoshhSessionService, TurnResult, db_session, init_db
from .locks import KeyedLock
from .state_store import (
    DatabaseStateStore,
    InMemoryStateStore,
    StaleStateError,
    StoredState,
    WorkflowStateStore,
    get_state_store,
)

__all__ = [
    "CoshhSessionService",
    "TurnResult",
    "db_session",
    "init_db",
    "KeyedLock",
    "DatabaseStateStore",
    "InMemoryStateStore",
    "StaleStateError",
    "StoredState",
    "WorkflowStateStore",
    "get_state_store",
]
