"""Purchase order endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_actor, get_financial_ledger, get_purchase_service
from src.application.dto.requests import CreatePurchaseOrderRequest
from src.application.dto.responses import (
    ErrorResponse,
    InvoiceResponse,
    PurchaseOrderResponse,
    PurchaseOrderResultResponse,
)
from src.core.entities import Actor, InvoiceKind, PurchaseOrderStatus
from src.core.services import FinancialLedger, PurchaseOrderService

router = APIRouter(prefix="/api/purchasing", tags=["purchasing"])


@router.post(
    "/orders",
    response_model=PurchaseOrderResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_purchase_order(
    request: CreatePurchaseOrderRequest,
    service: PurchaseOrderService = Depends(get_purchase_service),
    actor: Actor | None = Depends(get_actor),
) -> PurchaseOrderResultResponse:
    """Create a pending purchase order and its purchase invoice."""
    result = await service.create(
        supplier_id=request.supplier_id,
        items=[item.to_entity() for item in request.items],
        expected_delivery=request.expected_delivery,
        notes=request.notes,
        order_number=request.order_number,
        actor=actor,
    )
    return PurchaseOrderResultResponse.model_validate(result)


@router.get("/orders", response_model=list[PurchaseOrderResponse])
async def list_purchase_orders(
    status: PurchaseOrderStatus | None = None,
    auto_generated: bool | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: PurchaseOrderService = Depends(get_purchase_service),
) -> list[PurchaseOrderResponse]:
    orders = await service.list_orders(
        status=status, auto_generated=auto_generated, limit=limit, offset=offset
    )
    return [PurchaseOrderResponse.model_validate(o) for o in orders]


@router.get(
    "/orders/{order_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_purchase_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_service),
) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await service.get(order_id))


@router.get(
    "/orders/{order_id}/invoice",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_purchase_order_invoice(
    order_id: int,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> InvoiceResponse:
    invoice = await finance.get_order_invoice(InvoiceKind.PURCHASE, order_id)
    return InvoiceResponse.model_validate(invoice)


@router.post(
    "/orders/{order_id}/order",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def place_purchase_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_service),
) -> PurchaseOrderResponse:
    """Mark the order as placed with the supplier."""
    return PurchaseOrderResponse.model_validate(await service.order(order_id))


@router.post(
    "/orders/{order_id}/receive",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def receive_purchase_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_service),
    actor: Actor | None = Depends(get_actor),
) -> PurchaseOrderResponse:
    """Book every line into stock at its purchase price."""
    return PurchaseOrderResponse.model_validate(await service.receive(order_id, actor=actor))


@router.post(
    "/orders/{order_id}/cancel",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_purchase_order(
    order_id: int,
    service: PurchaseOrderService = Depends(get_purchase_service),
) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await service.cancel(order_id))
