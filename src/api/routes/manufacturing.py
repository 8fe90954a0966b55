"""Production order endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_actor, get_production_service
from src.application.dto.requests import CreateProductionOrderRequest
from src.application.dto.responses import ErrorResponse, ProductionOrderResponse
from src.core.entities import Actor, ProductionOrderStatus
from src.core.services import ProductionOrderService

router = APIRouter(prefix="/api/manufacturing", tags=["manufacturing"])


@router.post(
    "/orders",
    response_model=ProductionOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_production_order(
    request: CreateProductionOrderRequest,
    service: ProductionOrderService = Depends(get_production_service),
) -> ProductionOrderResponse:
    """Create a pending production order with its materials."""
    order = await service.create(
        product_id=request.product_id,
        quantity=request.quantity,
        materials=[m.to_entity() for m in request.materials],
        sales_order_id=request.sales_order_id,
        order_number=request.order_number,
        notes=request.notes,
    )
    return ProductionOrderResponse.model_validate(order)


@router.get("/orders", response_model=list[ProductionOrderResponse])
async def list_production_orders(
    status: ProductionOrderStatus | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: ProductionOrderService = Depends(get_production_service),
) -> list[ProductionOrderResponse]:
    orders = await service.list_orders(status=status, limit=limit, offset=offset)
    return [ProductionOrderResponse.model_validate(o) for o in orders]


@router.get(
    "/orders/{order_id}",
    response_model=ProductionOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_production_service),
) -> ProductionOrderResponse:
    return ProductionOrderResponse.model_validate(await service.get(order_id))


@router.post(
    "/orders/{order_id}/start",
    response_model=ProductionOrderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def start_production(
    order_id: int,
    service: ProductionOrderService = Depends(get_production_service),
    actor: Actor | None = Depends(get_actor),
) -> ProductionOrderResponse:
    """Consume all materials and move the order in progress."""
    return ProductionOrderResponse.model_validate(await service.start(order_id, actor=actor))


@router.post(
    "/orders/{order_id}/complete",
    response_model=ProductionOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def complete_production(
    order_id: int,
    service: ProductionOrderService = Depends(get_production_service),
    actor: Actor | None = Depends(get_actor),
) -> ProductionOrderResponse:
    """Add the finished quantity to stock."""
    return ProductionOrderResponse.model_validate(
        await service.complete(order_id, actor=actor)
    )


@router.post(
    "/orders/{order_id}/cancel",
    response_model=ProductionOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_production(
    order_id: int,
    service: ProductionOrderService = Depends(get_production_service),
) -> ProductionOrderResponse:
    return ProductionOrderResponse.model_validate(await service.cancel(order_id))
