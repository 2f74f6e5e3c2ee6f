"""Contract lifecycle: creation, counterparty response and escrow recording.

States: pending -> agreed | rejected. Both outcomes are terminal and only the
party that did not create the contract may move it out of pending. The
status change is a conditional write on ``status == 'pending'`` at the
persistence layer, so of two concurrent responses exactly one wins.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Callable, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from shokulab.db.base import DatabaseInterface
from shokulab.errors import InvalidTransition, NotFound, PersistenceError, ValidationError
from shokulab.models.contract import (
    CONTRACT_VALUE_KEY,
    PAYMENT_METHOD_KEY,
    Contract,
    ContractCreateInput,
    ContractDecision,
    ContractStatus,
    ContractTransition,
    EscrowStatus,
    EscrowTransaction,
)
from shokulab.models.notification import NotificationType
from shokulab.services.fees import ESCROW_METHOD_ID, calculate_fee, get_payment_method
from shokulab.services.generator import DocumentGenerator, missing_required_fields
from shokulab.services.notifications import LoggingNotifier, Notifier
from shokulab.services.templates import TemplateRegistry, get_template_registry
from shokulab.services.verification import VerificationGate
from shokulab.utils.config import get_settings

logger = logging.getLogger(__name__)

# Longer inputs are rejected before int() sees them
_INTEGER_PATTERN = re.compile(r"^\d{1,15}$")


def parse_contract_value(value: Union[int, str, None]) -> int:
    """Parse a user-entered contract value into a non-negative integer.

    Accepts ints and digit strings of up to 15 digits, with optional
    thousands separators ("50,000"). Raises ValidationError otherwise.
    """
    if isinstance(value, bool):
        raise ValidationError("契約金額を正しく入力してください。", fields=[CONTRACT_VALUE_KEY])
    if isinstance(value, int):
        parsed = value
    else:
        text = (value or "").strip().replace(",", "")
        if not _INTEGER_PATTERN.match(text):
            raise ValidationError("契約金額を正しく入力してください。", fields=[CONTRACT_VALUE_KEY])
        parsed = int(text)

    if parsed < 0:
        raise ValidationError("契約金額は0円以上で入力してください。", fields=[CONTRACT_VALUE_KEY])
    return parsed


def contract_message_text(title: str) -> str:
    """Chat message body that announces a contract"""
    return f"契約書「{title}」を送信しました"


class ContractService:
    """Creates contracts and drives them through their lifecycle."""

    def __init__(
        self,
        db: Optional[DatabaseInterface] = None,
        registry: Optional[TemplateRegistry] = None,
        generator: Optional[DocumentGenerator] = None,
        gate: Optional[VerificationGate] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._db = db
        self.registry = registry or get_template_registry()
        self.generator = generator or DocumentGenerator(self.registry.clauses)
        self.gate = gate or VerificationGate()
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock or self._default_clock

    @property
    def db(self) -> DatabaseInterface:
        """Lazy-load database client."""
        if self._db is None:
            from shokulab.db.supabase import get_database
            self._db = get_database()
        return self._db

    @staticmethod
    def _default_clock() -> datetime:
        return datetime.now(ZoneInfo(get_settings().timezone))

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_contract(self, request: ContractCreateInput) -> Contract:
        """Validate, gate, render and persist a new pending contract.

        Raises:
            NotFound: unknown template
            ValidationError: bad contract value, unknown payment method,
                missing required fields, or addressed to oneself
            PermissionDenied: the creator's verification level forbids it
            PersistenceError: the contract could not be stored
        """
        template = self.registry.get_template(request.template_type)
        contract_value = parse_contract_value(request.contract_value)
        get_payment_method(request.payment_method)

        missing = missing_required_fields(template, request.fields)
        if missing:
            raise ValidationError(
                "必須項目が入力されていません: " + "、".join(f.label for f in missing),
                fields=[f.key for f in missing],
            )

        if request.receiver_id and request.receiver_id == request.created_by:
            raise ValidationError("自分自身に契約書を送信することはできません。")

        level = self.db.get_verification_level(request.created_by)
        check = self.gate.check_contract_permission(level, contract_value)
        if not check.allowed:
            logger.info(
                f"Contract creation denied for {request.created_by} "
                f"({level.value}, {contract_value}): {check.reason}"
            )
        check.raise_for_denial()

        field_values = {
            key: request.fields[key]
            for key in template.field_keys
            if request.fields.get(key) is not None
        }
        ignored = set(request.fields) - set(field_values) - set(template.field_keys)
        if ignored:
            logger.debug(f"Ignoring fields not declared by '{template.id}': {sorted(ignored)}")

        now = self.clock()
        generated = self.generator.generate(
            template, field_values, request.party_a, request.party_b, now
        )

        row = {
            "id": str(uuid.uuid4()),
            "template_type": template.id,
            "title": request.title or template.title,
            "content": {
                **field_values,
                CONTRACT_VALUE_KEY: contract_value,
                PAYMENT_METHOD_KEY: request.payment_method,
            },
            "generated_content": generated,
            "status": ContractStatus.PENDING.value,
            "created_by": request.created_by,
            "created_at": now.isoformat(),
        }
        contract = Contract(**self.db.insert_contract(row))
        logger.info(f"Created contract {contract.id} ({template.id}) by {contract.created_by}")

        if request.receiver_id:
            contract = self._announce(contract, request.receiver_id)

        return contract

    def _announce(self, contract: Contract, receiver_id: str) -> Contract:
        """Post the chat reference message and notify the counterparty."""
        try:
            message = self.db.insert_chat_message({
                "id": str(uuid.uuid4()),
                "sender_id": contract.created_by,
                "receiver_id": receiver_id,
                "content": contract_message_text(contract.title),
                "message_type": "contract",
                "created_at": self.clock().isoformat(),
            })
            self.db.set_chat_message_id(contract.id, message["id"])
            contract = contract.model_copy(update={"chat_message_id": message["id"]})
        except PersistenceError as e:
            logger.warning(f"Contract {contract.id} stored but chat message failed: {e}")

        self._notify(receiver_id, NotificationType.CONTRACT_RECEIVED, contract)
        return contract

    def preview_contract(
        self,
        template_id: str,
        field_values: Mapping[str, Optional[str]],
        party_a: str,
        party_b: str,
    ) -> str:
        """Render contract text without validating or storing anything."""
        template = self.registry.get_template(template_id)
        return self.generator.generate(template, field_values, party_a, party_b, self.clock())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_contract(self, contract_id: str) -> Contract:
        row = self.db.get_contract(contract_id)
        if not row:
            raise NotFound(f"Contract not found: {contract_id}")
        return Contract(**row)

    def list_contracts(self, user_id: str) -> list[Contract]:
        return [Contract(**row) for row in self.db.list_contracts(user_id)]

    def get_escrow_transaction(self, contract_id: str) -> Optional[EscrowTransaction]:
        row = self.db.get_escrow_transaction(contract_id)
        return EscrowTransaction(**row) if row else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def respond(
        self,
        contract_id: str,
        actor_id: str,
        decision: Union[ContractDecision, str],
        reason: Optional[str] = None,
    ) -> ContractTransition:
        """Apply the counterparty's decision."""
        decision = ContractDecision(decision)
        if decision is ContractDecision.AGREE:
            return self.agree(contract_id, actor_id)
        return self.reject(contract_id, actor_id, reason)

    def agree(self, contract_id: str, actor_id: str) -> ContractTransition:
        """Counterparty agrees. Escrow contracts get their escrow transaction."""
        contract = self._transition(contract_id, actor_id, ContractStatus.AGREED)

        # The agreement is committed; the creator hears about it even if
        # the escrow write fails below
        self._notify(contract.created_by, NotificationType.CONTRACT_AGREED, contract)

        escrow = None
        if contract.payment_method == ESCROW_METHOD_ID:
            escrow = self.ensure_escrow_transaction(contract)
        return ContractTransition(contract=contract, escrow_transaction=escrow)

    def reject(self, contract_id: str, actor_id: str, reason: Optional[str] = None) -> ContractTransition:
        """Counterparty rejects. Never creates an escrow transaction."""
        contract = self._transition(contract_id, actor_id, ContractStatus.REJECTED)
        if reason:
            logger.info(f"Contract {contract_id} rejection reason: {reason}")

        self._notify(
            contract.created_by,
            NotificationType.CONTRACT_REJECTED,
            contract,
            extra={"reason": reason} if reason else None,
        )
        return ContractTransition(contract=contract)

    def _transition(self, contract_id: str, actor_id: str, target: ContractStatus) -> Contract:
        contract = self.get_contract(contract_id)

        if actor_id == contract.created_by:
            raise InvalidTransition("契約書の作成者は合意・拒否できません。")
        if contract.status.is_terminal:
            raise InvalidTransition(
                f"Contract {contract_id} is already {contract.status.value}"
            )

        updated = self.db.update_contract_status(
            contract_id, target.value, actor_id, self.clock().isoformat()
        )
        if updated is None:
            # Another response won the compare-and-swap
            logger.warning(f"Contract {contract_id} left pending before {actor_id} could respond")
            raise InvalidTransition(f"Contract {contract_id} is no longer pending")

        contract = Contract(**updated)
        logger.info(f"Contract {contract_id} {target.value} by {actor_id}")
        return contract

    def ensure_escrow_transaction(self, contract: Contract) -> EscrowTransaction:
        """Return the contract's escrow transaction, creating it if absent.

        Only valid for agreed escrow contracts. The amount comes from the
        contract's frozen content. Safe to call again after a failed write.
        """
        if contract.status is not ContractStatus.AGREED or contract.payment_method != ESCROW_METHOD_ID:
            raise InvalidTransition(
                f"Contract {contract.id} is not an agreed escrow contract"
            )

        existing = self.get_escrow_transaction(contract.id)
        if existing:
            return existing

        amount = contract.contract_value
        breakdown = calculate_fee(amount)
        try:
            row = self.db.insert_escrow_transaction({
                "id": str(uuid.uuid4()),
                "contract_id": contract.id,
                "amount": amount,
                "fee": breakdown.fee,
                "status": EscrowStatus.PENDING.value,
                "created_at": self.clock().isoformat(),
            })
        except PersistenceError:
            # A concurrent writer may have created it first
            existing = self.get_escrow_transaction(contract.id)
            if existing:
                return existing
            logger.error(f"Escrow transaction for agreed contract {contract.id} was not recorded")
            raise

        escrow = EscrowTransaction(**row)
        logger.info(
            f"Escrow transaction for {contract.id}: amount={amount} fee={breakdown.fee} "
            f"net={breakdown.net_amount}"
        )
        return escrow

    def record_payment_outcome(self, contract_id: str, succeeded: bool) -> EscrowTransaction:
        """Settle a pending escrow transaction with the payment provider's result."""
        escrow = self.get_escrow_transaction(contract_id)
        if escrow is None:
            raise NotFound(f"Escrow transaction not found for contract: {contract_id}")
        if escrow.status is not EscrowStatus.PENDING:
            raise InvalidTransition(
                f"Escrow for {contract_id} is already {escrow.status.value}"
            )

        target = EscrowStatus.COMPLETED if succeeded else EscrowStatus.FAILED
        row = self.db.update_escrow_status(contract_id, target.value)
        if row is None:
            raise InvalidTransition(f"Escrow for {contract_id} is no longer pending")
        escrow = EscrowTransaction(**row)

        contract = self.get_contract(contract_id)
        kind = NotificationType.PAYMENT_COMPLETED if succeeded else NotificationType.PAYMENT_FAILED
        for user_id in (contract.created_by, contract.agreed_by):
            if user_id:
                self._notify(user_id, kind, contract)

        logger.info(f"Escrow for {contract_id} {target.value}")
        return escrow

    def _notify(
        self,
        user_id: str,
        kind: NotificationType,
        contract: Contract,
        extra: Optional[dict] = None,
    ) -> None:
        """Signal the notifier; a failure here never undoes the transition."""
        data = {"contract_id": contract.id, "title": contract.title, **(extra or {})}
        try:
            self.notifier.notify(user_id, kind, data)
        except Exception as e:
            logger.warning(f"Notification '{kind.value}' to {user_id} failed: {e}")


_service: Optional[ContractService] = None


def get_contract_service() -> ContractService:
    """Get or create the process-wide contract service."""
    global _service
    if _service is None:
        from shokulab.db.supabase import get_database
        from shokulab.services.notifications import InAppNotifier

        db = get_database()
        _service = ContractService(
            db=db,
            generator=DocumentGenerator(timezone=get_settings().timezone),
            notifier=InAppNotifier(db),
        )
    return _service
