"""Store package: relational schema, transactions, and the action log."""

from lupine.store.action_log import ActionLog
from lupine.store.state_store import GameSession, StateStore, StoreIntegrityError

__all__ = ["ActionLog", "GameSession", "StateStore", "StoreIntegrityError"]
