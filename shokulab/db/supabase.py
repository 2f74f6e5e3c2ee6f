"""Supabase database client implementing DatabaseInterface"""

import logging
from pathlib import Path
from typing import List, Optional

from shokulab.db.base import DatabaseInterface
from shokulab.errors import PersistenceError
from shokulab.models.verification import VerificationLevel
from shokulab.utils.config import get_settings

logger = logging.getLogger(__name__)

# Lazy imports to avoid requiring supabase when using sqlite mode
_supabase_client = None
_service_client = None


def _get_supabase_client():
    """Get or create the singleton Supabase client (anon key)."""
    global _supabase_client
    if _supabase_client is None:
        from supabase import ClientOptions, create_client

        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY must be set when DB_MODE=supabase"
            )
        _supabase_client = create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(postgrest_client_timeout=10),
        )
    return _supabase_client


def _get_service_client():
    """Get or create the singleton Supabase service-role client (bypasses RLS)."""
    global _service_client
    if _service_client is None:
        from supabase import ClientOptions, create_client

        settings = get_settings()
        key = settings.supabase_service_key or settings.supabase_key
        if not settings.supabase_url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for write operations"
            )
        _service_client = create_client(
            settings.supabase_url,
            key,
            options=ClientOptions(postgrest_client_timeout=10),
        )
    return _service_client


def _execute(operation: str, build):
    """Build and execute a PostgREST query, mapping failures to PersistenceError.

    ``build`` is called inside the error mapping so a missing or invalid
    client configuration surfaces as PersistenceError too.
    """
    from postgrest.exceptions import APIError

    try:
        return build().execute()
    except APIError as e:
        # 23505 = unique_violation
        if getattr(e, "code", None) == "23505":
            raise PersistenceError(f"{operation} violated a unique constraint: {e.message}") from e
        logger.error(f"Supabase {operation} failed: {e}")
        raise PersistenceError(f"{operation} failed: {e}") from e
    except Exception as e:
        logger.error(f"Supabase {operation} failed: {e}")
        raise PersistenceError(f"{operation} failed: {e}") from e


class SupabaseClient(DatabaseInterface):
    """Supabase implementation of DatabaseInterface.

    The contract core runs server-side with no end-user session, so every
    query it depends on goes through the service-role client. RLS policies
    in 001_contracts.sql only scope what the mobile app can read directly.
    The anon client is used for the schema reachability check.
    """

    def __init__(self):
        self._anon = _get_supabase_client
        self._service = _get_service_client

    def init_db(self) -> None:
        """Verify the schema exists.
        In practice, users run the SQL in Supabase SQL Editor."""
        try:
            self._anon().table("contracts").select("id").limit(1).execute()
            logger.info("Supabase schema verified: tables accessible")
        except Exception as e:
            migration_path = Path(__file__).parent / "migrations" / "001_contracts.sql"
            logger.error(
                f"Schema not found. Run migration SQL in Supabase SQL Editor: {migration_path}"
            )
            raise PersistenceError(
                f"Supabase schema not initialized. Run 001_contracts.sql in SQL Editor. Error: {e}"
            ) from e

    # Contracts

    def insert_contract(self, contract: dict) -> dict:
        data = {k: v for k, v in contract.items() if v is not None}
        result = _execute(
            "insert_contract",
            lambda: self._service().table("contracts").insert(data),
        )
        return result.data[0]

    def get_contract(self, contract_id: str) -> Optional[dict]:
        result = _execute(
            "get_contract",
            lambda: self._service().table("contracts").select("*").eq("id", contract_id),
        )
        return result.data[0] if result.data else None

    def list_contracts(self, created_by: str) -> List[dict]:
        result = _execute(
            "list_contracts",
            lambda: self._service()
            .table("contracts")
            .select("*")
            .eq("created_by", created_by)
            .order("created_at", desc=True),
        )
        return result.data

    def update_contract_status(
        self, contract_id: str, status: str, actor_id: str, at: str
    ) -> Optional[dict]:
        """Conditional update. The status filter makes it a compare-and-swap."""
        result = _execute(
            "update_contract_status",
            lambda: self._service()
            .table("contracts")
            .update({"status": status, "agreed_by": actor_id, "agreed_at": at})
            .eq("id", contract_id)
            .eq("status", "pending"),
        )
        return result.data[0] if result.data else None

    def set_chat_message_id(self, contract_id: str, message_id: str) -> None:
        _execute(
            "set_chat_message_id",
            lambda: self._service()
            .table("contracts")
            .update({"chat_message_id": message_id})
            .eq("id", contract_id),
        )

    # Escrow

    def insert_escrow_transaction(self, transaction: dict) -> dict:
        result = _execute(
            "insert_escrow_transaction",
            lambda: self._service().table("escrow_transactions").insert(transaction),
        )
        return result.data[0]

    def get_escrow_transaction(self, contract_id: str) -> Optional[dict]:
        result = _execute(
            "get_escrow_transaction",
            lambda: self._service()
            .table("escrow_transactions")
            .select("*")
            .eq("contract_id", contract_id)
            .limit(1),
        )
        return result.data[0] if result.data else None

    def update_escrow_status(self, contract_id: str, status: str) -> Optional[dict]:
        result = _execute(
            "update_escrow_status",
            lambda: self._service()
            .table("escrow_transactions")
            .update({"status": status})
            .eq("contract_id", contract_id)
            .eq("status", "pending"),
        )
        return result.data[0] if result.data else None

    # Identity

    def get_verification_level(self, user_id: str) -> VerificationLevel:
        result = _execute(
            "get_verification_level",
            lambda: self._service()
            .table("user_verifications")
            .select("verification_level")
            .eq("user_id", user_id)
            .limit(1),
        )
        if not result.data:
            return VerificationLevel.UNVERIFIED
        return VerificationLevel(result.data[0]["verification_level"])

    def set_verification_level(self, user_id: str, level: VerificationLevel) -> None:
        _execute(
            "set_verification_level",
            lambda: self._service()
            .table("user_verifications")
            .upsert(
                {"user_id": user_id, "verification_level": VerificationLevel(level).value},
                on_conflict="user_id",
            ),
        )

    # Messaging / notifications

    def insert_chat_message(self, message: dict) -> dict:
        result = _execute(
            "insert_chat_message",
            lambda: self._service().table("messages").insert(message),
        )
        return result.data[0]

    def insert_notification(self, notification: dict) -> dict:
        result = _execute(
            "insert_notification",
            lambda: self._service().table("in_app_notifications").insert(notification),
        )
        return result.data[0]

    def list_notifications(self, user_id: str) -> List[dict]:
        result = _execute(
            "list_notifications",
            lambda: self._service()
            .table("in_app_notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
        )
        return result.data

    def get_status(self) -> dict:
        """Get database status info."""
        settings = get_settings()
        try:
            client = self._service()
            contracts = client.table("contracts").select("id", count="exact").execute()
            escrows = client.table("escrow_transactions").select("id", count="exact").execute()
            return {
                "mode": "supabase",
                "url": settings.supabase_url,
                "contracts": contracts.count or 0,
                "escrow_transactions": escrows.count or 0,
                "status": "connected",
            }
        except Exception as e:
            return {
                "mode": "supabase",
                "url": settings.supabase_url,
                "status": f"error: {e}",
            }


def get_database(mode: str = None) -> DatabaseInterface:
    """Factory: returns appropriate database implementation.

    mode: 'supabase' or 'sqlite'. Defaults to DB_MODE env var.
    """
    if mode is None:
        mode = get_settings().db_mode

    if mode == "supabase":
        return SupabaseClient()
    else:
        # Import here to avoid circular imports
        from shokulab.db.sqlite_client import SQLiteClient

        return SQLiteClient()
