"""SQLite database operations"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from shokulab.utils.config import get_settings


def get_db_path() -> Path:
    """Get database path from settings"""
    settings = get_settings()
    return Path(settings.database_path)


@contextmanager
def get_connection():
    """Get a database connection as context manager"""
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    """Initialize database with schema"""
    with get_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS contracts (
                id TEXT PRIMARY KEY,
                template_type TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                generated_content TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'agreed', 'rejected')),
                created_by TEXT NOT NULL,
                agreed_by TEXT,
                created_at TIMESTAMP NOT NULL,
                agreed_at TIMESTAMP,
                chat_message_id TEXT
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_contracts_created_by
            ON contracts(created_by)
        """)

        # One escrow transaction per contract
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS escrow_transactions (
                id TEXT PRIMARY KEY,
                contract_id TEXT NOT NULL UNIQUE REFERENCES contracts(id),
                amount INTEGER NOT NULL,
                fee INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'completed', 'failed')),
                created_at TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS user_verifications (
                user_id TEXT PRIMARY KEY,
                verification_level TEXT NOT NULL DEFAULT 'unverified',
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                sender_id TEXT NOT NULL,
                receiver_id TEXT NOT NULL,
                content TEXT NOT NULL,
                message_type TEXT NOT NULL DEFAULT 'text',
                created_at TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS in_app_notifications (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                type TEXT NOT NULL,
                title TEXT NOT NULL,
                body TEXT,
                data TEXT,
                is_read INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_notifications_user
            ON in_app_notifications(user_id)
        """)


def _contract_row(row: sqlite3.Row) -> dict:
    data = dict(row)
    data["content"] = json.loads(data["content"]) if data.get("content") else {}
    return data


def insert_contract(contract: dict) -> dict:
    """Insert a contract"""
    with get_connection() as conn:
        conn.execute("""
            INSERT INTO contracts
            (id, template_type, title, content, generated_content, status,
             created_by, agreed_by, created_at, agreed_at, chat_message_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            contract["id"],
            contract["template_type"],
            contract["title"],
            json.dumps(contract.get("content", {}), ensure_ascii=False),
            contract["generated_content"],
            contract.get("status", "pending"),
            contract["created_by"],
            contract.get("agreed_by"),
            contract["created_at"],
            contract.get("agreed_at"),
            contract.get("chat_message_id"),
        ))
    return get_contract(contract["id"])


def get_contract(contract_id: str) -> Optional[dict]:
    """Get contract by ID"""
    with get_connection() as conn:
        row = conn.execute("SELECT * FROM contracts WHERE id = ?", (contract_id,)).fetchone()
        return _contract_row(row) if row else None


def list_contracts(created_by: str) -> list[dict]:
    """Contracts created by a user, newest first"""
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM contracts WHERE created_by = ? ORDER BY created_at DESC, rowid DESC",
            (created_by,),
        ).fetchall()
        return [_contract_row(r) for r in rows]


def update_contract_status(contract_id: str, status: str, actor_id: str, at: str) -> Optional[dict]:
    """Compare-and-swap the status away from 'pending'"""
    with get_connection() as conn:
        cursor = conn.execute("""
            UPDATE contracts
            SET status = ?, agreed_by = ?, agreed_at = ?
            WHERE id = ? AND status = 'pending'
        """, (status, actor_id, at, contract_id))
        if cursor.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM contracts WHERE id = ?", (contract_id,)).fetchone()
        return _contract_row(row)


def set_chat_message_id(contract_id: str, message_id: str) -> None:
    with get_connection() as conn:
        conn.execute(
            "UPDATE contracts SET chat_message_id = ? WHERE id = ?",
            (message_id, contract_id),
        )


def insert_escrow_transaction(transaction: dict) -> dict:
    """Insert an escrow transaction"""
    with get_connection() as conn:
        conn.execute("""
            INSERT INTO escrow_transactions (id, contract_id, amount, fee, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            transaction["id"],
            transaction["contract_id"],
            transaction["amount"],
            transaction["fee"],
            transaction.get("status", "pending"),
            transaction["created_at"],
        ))
    return get_escrow_transaction(transaction["contract_id"])


def get_escrow_transaction(contract_id: str) -> Optional[dict]:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT * FROM escrow_transactions WHERE contract_id = ?", (contract_id,)
        ).fetchone()
        return dict(row) if row else None


def update_escrow_status(contract_id: str, status: str) -> Optional[dict]:
    """Compare-and-swap the escrow status away from 'pending'"""
    with get_connection() as conn:
        cursor = conn.execute(
            "UPDATE escrow_transactions SET status = ? WHERE contract_id = ? AND status = 'pending'",
            (status, contract_id),
        )
        if cursor.rowcount == 0:
            return None
        row = conn.execute(
            "SELECT * FROM escrow_transactions WHERE contract_id = ?", (contract_id,)
        ).fetchone()
        return dict(row)


def get_verification_level(user_id: str) -> Optional[str]:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT verification_level FROM user_verifications WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["verification_level"] if row else None


def set_verification_level(user_id: str, level: str) -> None:
    with get_connection() as conn:
        conn.execute("""
            INSERT INTO user_verifications (user_id, verification_level, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(user_id) DO UPDATE SET
                verification_level = excluded.verification_level,
                updated_at = CURRENT_TIMESTAMP
        """, (user_id, level))


def insert_chat_message(message: dict) -> dict:
    with get_connection() as conn:
        conn.execute("""
            INSERT INTO messages (id, sender_id, receiver_id, content, message_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            message["id"],
            message["sender_id"],
            message["receiver_id"],
            message["content"],
            message.get("message_type", "text"),
            message["created_at"],
        ))
        row = conn.execute("SELECT * FROM messages WHERE id = ?", (message["id"],)).fetchone()
        return dict(row)


def insert_notification(notification: dict) -> dict:
    with get_connection() as conn:
        conn.execute("""
            INSERT INTO in_app_notifications (id, user_id, type, title, body, data, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            notification["id"],
            notification["user_id"],
            notification["type"],
            notification["title"],
            notification.get("body"),
            json.dumps(notification.get("data") or {}, ensure_ascii=False),
            notification["created_at"],
        ))
    return {**notification, "is_read": False}


def list_notifications(user_id: str) -> list[dict]:
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM in_app_notifications WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        ).fetchall()
        results = []
        for row in rows:
            data = dict(row)
            data["data"] = json.loads(data["data"]) if data.get("data") else {}
            data["is_read"] = bool(data["is_read"])
            results.append(data)
        return results
