"""Sales order endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_actor, get_financial_ledger, get_sales_service
from src.application.dto.requests import CreateSalesOrderRequest
from src.application.dto.responses import (
    ErrorResponse,
    InvoiceResponse,
    SalesOrderResponse,
    SalesOrderResultResponse,
)
from src.core.entities import Actor, InvoiceKind, SalesOrderStatus
from src.core.services import FinancialLedger, SalesOrderService

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post(
    "/orders",
    response_model=SalesOrderResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_sales_order(
    request: CreateSalesOrderRequest,
    service: SalesOrderService = Depends(get_sales_service),
    actor: Actor | None = Depends(get_actor),
) -> SalesOrderResultResponse:
    """Create a pending sales order and issue its invoice."""
    result = await service.create(
        customer_id=request.customer_id,
        items=[item.to_entity() for item in request.items],
        delivery_date=request.delivery_date,
        notes=request.notes,
        order_number=request.order_number,
        actor=actor,
    )
    return SalesOrderResultResponse.model_validate(result)


@router.get("/orders", response_model=list[SalesOrderResponse])
async def list_sales_orders(
    status: SalesOrderStatus | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: SalesOrderService = Depends(get_sales_service),
) -> list[SalesOrderResponse]:
    orders = await service.list_orders(status=status, limit=limit, offset=offset)
    return [SalesOrderResponse.model_validate(o) for o in orders]


@router.get(
    "/orders/{order_id}",
    response_model=SalesOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_sales_order(
    order_id: int,
    service: SalesOrderService = Depends(get_sales_service),
) -> SalesOrderResponse:
    return SalesOrderResponse.model_validate(await service.get(order_id))


@router.get(
    "/orders/{order_id}/invoice",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_sales_order_invoice(
    order_id: int,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> InvoiceResponse:
    invoice = await finance.get_order_invoice(InvoiceKind.SALES, order_id)
    return InvoiceResponse.model_validate(invoice)


@router.post(
    "/orders/{order_id}/confirm",
    response_model=SalesOrderResultResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def confirm_sales_order(
    order_id: int,
    service: SalesOrderService = Depends(get_sales_service),
    actor: Actor | None = Depends(get_actor),
) -> SalesOrderResultResponse:
    """Take every line out of stock; spawn production for short finished goods."""
    result = await service.confirm(order_id, actor=actor)
    return SalesOrderResultResponse.model_validate(result)


@router.post(
    "/orders/{order_id}/ship",
    response_model=SalesOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def ship_sales_order(
    order_id: int,
    service: SalesOrderService = Depends(get_sales_service),
) -> SalesOrderResponse:
    return SalesOrderResponse.model_validate(await service.ship(order_id))


@router.post(
    "/orders/{order_id}/deliver",
    response_model=SalesOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def deliver_sales_order(
    order_id: int,
    service: SalesOrderService = Depends(get_sales_service),
) -> SalesOrderResponse:
    return SalesOrderResponse.model_validate(await service.deliver(order_id))


@router.post(
    "/orders/{order_id}/cancel",
    response_model=SalesOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_sales_order(
    order_id: int,
    service: SalesOrderService = Depends(get_sales_service),
) -> SalesOrderResponse:
    """Cancel a pending order and its unpaid invoice."""
    return SalesOrderResponse.model_validate(await service.cancel(order_id))
