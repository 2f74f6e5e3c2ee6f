"""SQLite wrapper implementing DatabaseInterface"""

import logging
import sqlite3
from typing import List, Optional

from shokulab.db.base import DatabaseInterface
from shokulab.db import sqlite as sqlite_ops
from shokulab.errors import PersistenceError
from shokulab.models.verification import VerificationLevel
from shokulab.utils.config import get_settings

logger = logging.getLogger(__name__)


def _wrap(operation: str, func, *args):
    """Run a sqlite operation, turning driver errors into PersistenceError."""
    try:
        return func(*args)
    except sqlite3.IntegrityError as e:
        raise PersistenceError(f"{operation} violated a constraint: {e}") from e
    except sqlite3.Error as e:
        logger.error(f"SQLite {operation} failed: {e}")
        raise PersistenceError(f"{operation} failed: {e}") from e


class SQLiteClient(DatabaseInterface):
    """SQLite implementation of DatabaseInterface.
    Wraps the functions in sqlite.py."""

    def init_db(self) -> None:
        _wrap("init_db", sqlite_ops.init_db)

    def insert_contract(self, contract: dict) -> dict:
        return _wrap("insert_contract", sqlite_ops.insert_contract, contract)

    def get_contract(self, contract_id: str) -> Optional[dict]:
        return _wrap("get_contract", sqlite_ops.get_contract, contract_id)

    def list_contracts(self, created_by: str) -> List[dict]:
        return _wrap("list_contracts", sqlite_ops.list_contracts, created_by)

    def update_contract_status(
        self, contract_id: str, status: str, actor_id: str, at: str
    ) -> Optional[dict]:
        return _wrap(
            "update_contract_status", sqlite_ops.update_contract_status,
            contract_id, status, actor_id, at,
        )

    def set_chat_message_id(self, contract_id: str, message_id: str) -> None:
        _wrap("set_chat_message_id", sqlite_ops.set_chat_message_id, contract_id, message_id)

    def insert_escrow_transaction(self, transaction: dict) -> dict:
        return _wrap("insert_escrow_transaction", sqlite_ops.insert_escrow_transaction, transaction)

    def get_escrow_transaction(self, contract_id: str) -> Optional[dict]:
        return _wrap("get_escrow_transaction", sqlite_ops.get_escrow_transaction, contract_id)

    def update_escrow_status(self, contract_id: str, status: str) -> Optional[dict]:
        return _wrap("update_escrow_status", sqlite_ops.update_escrow_status, contract_id, status)

    def get_verification_level(self, user_id: str) -> VerificationLevel:
        level = _wrap("get_verification_level", sqlite_ops.get_verification_level, user_id)
        return VerificationLevel(level) if level else VerificationLevel.UNVERIFIED

    def set_verification_level(self, user_id: str, level: VerificationLevel) -> None:
        _wrap(
            "set_verification_level", sqlite_ops.set_verification_level,
            user_id, VerificationLevel(level).value,
        )

    def insert_chat_message(self, message: dict) -> dict:
        return _wrap("insert_chat_message", sqlite_ops.insert_chat_message, message)

    def insert_notification(self, notification: dict) -> dict:
        return _wrap("insert_notification", sqlite_ops.insert_notification, notification)

    def list_notifications(self, user_id: str) -> List[dict]:
        return _wrap("list_notifications", sqlite_ops.list_notifications, user_id)

    def get_status(self) -> dict:
        settings = get_settings()
        try:
            with sqlite_ops.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM contracts")
                contracts = cursor.fetchone()[0]
                cursor.execute("SELECT COUNT(*) FROM escrow_transactions")
                escrows = cursor.fetchone()[0]
            return {
                "mode": "sqlite",
                "path": settings.database_path,
                "contracts": contracts,
                "escrow_transactions": escrows,
                "status": "connected",
            }
        except Exception as e:
            return {
                "mode": "sqlite",
                "path": settings.database_path,
                "status": f"error: {e}",
            }
