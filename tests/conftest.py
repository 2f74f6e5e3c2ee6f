"""Pytest configuration and fixtures"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from shokulab.models.contract import ContractCreateInput
from shokulab.models.notification import NotificationType
from shokulab.models.verification import VerificationLevel
from shokulab.services.notifications import Notifier

FIXED_NOW = datetime(2025, 7, 1, 9, 5, 3, tzinfo=ZoneInfo("Asia/Tokyo"))

FOOD_TRADING_FIELDS = {
    "product": "新鮮野菜セット",
    "quantity": "毎週10kg",
    "price": "1kg当たり1,500円",
    "deliverySchedule": "毎週月曜日午前中",
    "paymentTerms": "月末締め翌月末払い",
    "qualityStandards": "農薬不使用",
    "contractPeriod": "2025年7月1日〜2025年12月31日",
}


class RecordingNotifier(Notifier):
    """Keeps notifications in memory for assertions"""

    def __init__(self):
        self.events = []

    def notify(self, user_id, kind, data=None):
        self.events.append((user_id, NotificationType(kind), data or {}))

    def kinds_for(self, user_id):
        return [kind for uid, kind, _ in self.events if uid == user_id]


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Set up test environment with temporary database"""
    db_path = tmp_path / "test.db"

    monkeypatch.setenv("DB_MODE", "sqlite")
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.setenv("CONTRACTS_DIR", str(tmp_path / "contracts"))

    # Process-wide singletons must not leak between tests
    monkeypatch.setattr("shokulab.services.contract._service", None)

    yield

    # Cleanup handled by tmp_path fixture


@pytest.fixture
def db():
    from shokulab.db.sqlite_client import SQLiteClient

    client = SQLiteClient()
    client.init_db()
    return client


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(db, notifier):
    from shokulab.services.contract import ContractService

    return ContractService(db=db, notifier=notifier, clock=lambda: FIXED_NOW)


@pytest.fixture
def verified_users(db):
    """owner-a and owner-b may create contracts up to 100,000 yen"""
    db.set_verification_level("owner-a", VerificationLevel.VERIFIED)
    db.set_verification_level("owner-b", VerificationLevel.VERIFIED)


@pytest.fixture
def make_request():
    """Factory for a complete food trading contract request by owner-a"""

    def _make(**overrides) -> ContractCreateInput:
        data = {
            "template_type": "food_trading",
            "fields": dict(FOOD_TRADING_FIELDS),
            "contract_value": 50000,
            "payment_method": "shokulab_escrow",
            "created_by": "owner-a",
            "party_a": "八百屋みどり",
            "party_b": "レストラン青空",
            "receiver_id": "owner-b",
        }
        data.update(overrides)
        return ContractCreateInput(**data)

    return _make
