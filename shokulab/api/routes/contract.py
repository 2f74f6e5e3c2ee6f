"""Contract API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from shokulab.api.schemas import (
    ContractCreateRequest,
    ContractDetailResponse,
    ContractFieldItem,
    ContractPreviewRequest,
    ContractPreviewResponse,
    ContractRespondRequest,
    ContractTemplateDetail,
    ContractTemplateItem,
    ContractTemplatesResponse,
    ContractTransitionResponse,
    FeeResponse,
    PaymentOutcomeRequest,
)
from shokulab.errors import (
    ContractError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PersistenceError,
    ValidationError,
)
from shokulab.models.contract import ContractCreateInput, EscrowTransaction
from shokulab.services.contract import ContractService, get_contract_service
from shokulab.services.fees import ESCROW_METHOD_ID, calculate_fee
from shokulab.services.templates import TemplateRegistry, get_template_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_service() -> ContractService:
    """Dependency: the process-wide contract service (overridable in tests)."""
    return get_contract_service()


def get_registry() -> TemplateRegistry:
    return get_template_registry()


def _to_http(error: ContractError) -> HTTPException:
    """Map a contract core error to its HTTP status."""
    if isinstance(error, PermissionDenied):
        return HTTPException(
            status_code=403,
            detail={"reason": error.reason, "message": error.message, "action": error.action},
        )
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": error.message, "fields": error.fields},
        )
    if isinstance(error, NotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidTransition):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PersistenceError):
        logger.error(f"Persistence failure: {error}")
        return HTTPException(status_code=503, detail="データの保存に失敗しました。")
    return HTTPException(status_code=500, detail=str(error))


def _fee_response(amount: int) -> FeeResponse:
    breakdown = calculate_fee(amount)
    return FeeResponse(amount=amount, **breakdown.model_dump())


@router.get("/contract/templates", response_model=ContractTemplatesResponse)
async def list_templates(registry: TemplateRegistry = Depends(get_registry)):
    """List available contract templates in catalogue order."""
    templates = [
        ContractTemplateItem(
            id=t.id,
            title=t.title,
            user_friendly_title=t.user_friendly_title,
            description=t.description,
            field_count=len(t.custom_fields),
        )
        for t in registry.list_templates()
    ]
    return ContractTemplatesResponse(templates=templates)


@router.get("/contract/templates/{template_id}", response_model=ContractTemplateDetail)
async def get_template(template_id: str, registry: TemplateRegistry = Depends(get_registry)):
    """Template details with form fields."""
    try:
        template = registry.get_template(template_id)
    except NotFound as e:
        raise _to_http(e) from e

    return ContractTemplateDetail(
        id=template.id,
        title=template.title,
        user_friendly_title=template.user_friendly_title,
        description=template.description,
        fields=[
            ContractFieldItem(
                key=f.key,
                label=f.label,
                type=f.type.value,
                required=f.required,
                placeholder=f.placeholder,
            )
            for f in template.custom_fields
        ],
    )


@router.post("/contract/preview", response_model=ContractPreviewResponse)
async def preview_contract(
    request: ContractPreviewRequest,
    service: ContractService = Depends(get_service),
):
    """Render contract text without validating or saving."""
    try:
        content = service.preview_contract(
            request.template_id, request.field_values, request.party_a, request.party_b
        )
    except ContractError as e:
        raise _to_http(e) from e
    return ContractPreviewResponse(content=content)


@router.get("/fees", response_model=FeeResponse)
async def fee_quote(amount: int = Query(..., ge=0)):
    """Escrow fee breakdown for an amount."""
    return _fee_response(amount)


@router.post("/contract", response_model=ContractDetailResponse, status_code=201)
async def create_contract(
    request: ContractCreateRequest,
    service: ContractService = Depends(get_service),
):
    """Create a pending contract and announce it to the counterparty."""
    try:
        contract = service.create_contract(ContractCreateInput(**request.model_dump()))
    except ContractError as e:
        raise _to_http(e) from e

    fee = _fee_response(contract.contract_value) if contract.payment_method == ESCROW_METHOD_ID else None
    return ContractDetailResponse(contract=contract, fee=fee)


@router.get("/contract/{contract_id}", response_model=ContractDetailResponse)
async def get_contract(contract_id: str, service: ContractService = Depends(get_service)):
    """Contract with fee breakdown and escrow transaction when applicable."""
    try:
        contract = service.get_contract(contract_id)
        escrow = service.get_escrow_transaction(contract_id)
    except ContractError as e:
        raise _to_http(e) from e

    fee = _fee_response(contract.contract_value) if contract.payment_method == ESCROW_METHOD_ID else None
    return ContractDetailResponse(contract=contract, fee=fee, escrow_transaction=escrow)


@router.post("/contract/{contract_id}/respond", response_model=ContractTransitionResponse)
async def respond_to_contract(
    contract_id: str,
    request: ContractRespondRequest,
    service: ContractService = Depends(get_service),
):
    """Agree to or reject a pending contract as the counterparty."""
    try:
        result = service.respond(contract_id, request.actor_id, request.decision, request.reason)
    except ContractError as e:
        raise _to_http(e) from e
    return ContractTransitionResponse(
        contract=result.contract,
        escrow_transaction=result.escrow_transaction,
    )


@router.post("/contract/{contract_id}/payment", response_model=EscrowTransaction)
async def record_payment(
    contract_id: str,
    request: PaymentOutcomeRequest,
    service: ContractService = Depends(get_service),
):
    """Payment provider callback settling the escrow transaction."""
    try:
        return service.record_payment_outcome(contract_id, request.succeeded)
    except ContractError as e:
        raise _to_http(e) from e


@router.get("/contract/{contract_id}/pdf")
async def contract_pdf(contract_id: str, service: ContractService = Depends(get_service)):
    """Download the contract's frozen text as PDF."""
    from shokulab.services.pdf_generator import ContractPdfExporter
    from shokulab.utils.config import get_settings

    try:
        contract = service.get_contract(contract_id)
    except ContractError as e:
        raise _to_http(e) from e

    pdf = ContractPdfExporter(timezone=get_settings().timezone).render(contract)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="contract_{contract.id}.pdf"'},
    )
