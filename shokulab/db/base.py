"""Abstract database interface - strategy pattern for SQLite/Supabase switching"""

from abc import ABC, abstractmethod
from typing import List, Optional

from shokulab.models.verification import VerificationLevel


class DatabaseInterface(ABC):
    """Abstract interface for contract persistence.
    Implemented by both SQLite and Supabase backends.

    Rows are plain dicts with the column names of the schema; ``content``
    (contracts) and ``data`` (notifications) are dicts, timestamps are ISO
    8601 strings. Driver failures surface as PersistenceError.
    """

    @abstractmethod
    def init_db(self) -> None:
        """Initialize database schema (create tables, indexes)."""

    # Contracts

    @abstractmethod
    def insert_contract(self, contract: dict) -> dict:
        """Insert a contract row. Returns the stored row."""

    @abstractmethod
    def get_contract(self, contract_id: str) -> Optional[dict]:
        """Get contract by ID."""

    @abstractmethod
    def list_contracts(self, created_by: str) -> List[dict]:
        """Contracts created by a user, newest first."""

    @abstractmethod
    def update_contract_status(
        self, contract_id: str, status: str, actor_id: str, at: str
    ) -> Optional[dict]:
        """Move a contract out of 'pending'.

        Conditional on the stored status still being 'pending'. Returns the
        updated row, or None when the precondition failed (or no such row).
        """

    @abstractmethod
    def set_chat_message_id(self, contract_id: str, message_id: str) -> None:
        """Link the chat message that announced the contract."""

    # Escrow

    @abstractmethod
    def insert_escrow_transaction(self, transaction: dict) -> dict:
        """Insert an escrow transaction. At most one per contract_id."""

    @abstractmethod
    def get_escrow_transaction(self, contract_id: str) -> Optional[dict]:
        """Escrow transaction of a contract, if any."""

    @abstractmethod
    def update_escrow_status(self, contract_id: str, status: str) -> Optional[dict]:
        """Settle an escrow transaction, conditional on it being 'pending'."""

    # Identity (read side of the verification provider)

    @abstractmethod
    def get_verification_level(self, user_id: str) -> VerificationLevel:
        """Verification level of a user; 'unverified' when unknown."""

    @abstractmethod
    def set_verification_level(self, user_id: str, level: VerificationLevel) -> None:
        """Record a user's verification level."""

    # Messaging / notifications

    @abstractmethod
    def insert_chat_message(self, message: dict) -> dict:
        """Insert a chat message row. Returns the stored row."""

    @abstractmethod
    def insert_notification(self, notification: dict) -> dict:
        """Insert an in-app notification row. Returns the stored row."""

    @abstractmethod
    def list_notifications(self, user_id: str) -> List[dict]:
        """In-app notifications of a user, newest first."""

    @abstractmethod
    def get_status(self) -> dict:
        """Get database status info (table counts, connection status)."""
