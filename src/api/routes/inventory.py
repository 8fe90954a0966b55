"""Inventory management endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_actor, get_stock_ledger
from src.application.dto.requests import (
    AdjustStockRequest,
    CountStockRequest,
    CreateProductRequest,
    UpdateProductRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    LedgerStockResponse,
    LedgerVerificationResponse,
    LedgerDiscrepancyResponse,
    MovementResultResponse,
    ProductListResponse,
    ProductResponse,
    ProductValueResponse,
    StockMovementResponse,
    StockValuationResponse,
)
from src.core.entities import (
    Actor,
    MovementDirection,
    MovementReference,
    Product,
    ProductCategory,
)
from src.core.services import MovementResult, StockLedger

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _movement_response(result: MovementResult) -> MovementResultResponse:
    return MovementResultResponse(
        product=ProductResponse.model_validate(result.product),
        movement=(
            StockMovementResponse.model_validate(result.movement)
            if result.movement is not None
            else None
        ),
    )


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    ledger: StockLedger = Depends(get_stock_ledger),
    actor: Actor | None = Depends(get_actor),
) -> ProductResponse:
    """Register a product. Opening stock is booked as an adjustment."""
    product = await ledger.create_product(Product(**request.model_dump()), actor=actor)
    return ProductResponse.model_validate(product)


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: ProductCategory | None = None,
    low_stock: bool = False,
    include_inactive: bool = False,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ProductListResponse:
    """List products, optionally only those at or below minimum stock."""
    products = await ledger.list_products(
        category=category,
        low_stock=low_stock,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=len(products),
    )


@router.get("/products/low-stock", response_model=list[ProductResponse])
async def list_low_stock(
    limit: int = Query(default=100, ge=1, le=1000),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> list[ProductResponse]:
    products = await ledger.list_low_stock(limit=limit)
    return [ProductResponse.model_validate(p) for p in products]


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: int,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ProductResponse:
    return ProductResponse.model_validate(await ledger.get_product(product_id))


@router.patch(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ProductResponse:
    """Update product details. Stock changes go through adjustments."""
    product = await ledger.update_product(product_id, request.model_dump(exclude_unset=True))
    return ProductResponse.model_validate(product)


@router.delete(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_product(
    product_id: int,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ProductResponse:
    """Deactivate a product that no order references."""
    return ProductResponse.model_validate(await ledger.delete_product(product_id))


@router.post(
    "/products/{product_id}/adjust",
    response_model=MovementResultResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def adjust_stock(
    product_id: int,
    request: AdjustStockRequest,
    ledger: StockLedger = Depends(get_stock_ledger),
    actor: Actor | None = Depends(get_actor),
) -> MovementResultResponse:
    """Manual adjustment up or down."""
    result = await ledger.adjust_stock(
        product_id,
        MovementDirection(request.direction),
        request.quantity,
        notes=request.notes,
        actor=actor,
    )
    return _movement_response(result)


@router.post(
    "/products/{product_id}/count",
    response_model=MovementResultResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def count_stock(
    product_id: int,
    request: CountStockRequest,
    ledger: StockLedger = Depends(get_stock_ledger),
    actor: Actor | None = Depends(get_actor),
) -> MovementResultResponse:
    """Record a physical count; the difference becomes one adjustment."""
    result = await ledger.count_stock(
        product_id, request.counted_quantity, notes=request.notes, actor=actor
    )
    return _movement_response(result)


@router.get(
    "/products/{product_id}/value",
    response_model=ProductValueResponse,
    responses={404: {"model": ErrorResponse}},
)
async def product_value(
    product_id: int,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ProductValueResponse:
    return ProductValueResponse(
        product_id=product_id,
        current_value=await ledger.current_value(product_id),
    )


@router.get(
    "/products/{product_id}/ledger",
    response_model=LedgerStockResponse,
    responses={404: {"model": ErrorResponse}},
)
async def product_ledger_stock(
    product_id: int,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> LedgerStockResponse:
    """Compare stored stock with the sum of the product's movements."""
    ledger_stock = await ledger.recompute_stock(product_id)
    product = await ledger.get_product(product_id)
    return LedgerStockResponse(
        product_id=product_id,
        current_stock=product.current_stock,
        ledger_stock=ledger_stock,
    )


@router.get("/movements", response_model=list[StockMovementResponse])
async def list_movements(
    product_id: int | None = None,
    direction: MovementDirection | None = None,
    reference: MovementReference | None = None,
    reference_id: int | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> list[StockMovementResponse]:
    """Movement log, newest first."""
    movements = await ledger.list_movements(
        product_id=product_id,
        direction=direction,
        reference=reference,
        reference_id=reference_id,
        limit=limit,
        offset=offset,
    )
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get("/valuation", response_model=StockValuationResponse)
async def stock_valuation(
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockValuationResponse:
    """Total stock value across active products."""
    return StockValuationResponse.model_validate(await ledger.stock_value())


@router.get("/verify", response_model=LedgerVerificationResponse)
async def verify_ledger(
    ledger: StockLedger = Depends(get_stock_ledger),
) -> LedgerVerificationResponse:
    """Find products whose stock differs from their movement log."""
    discrepancies = await ledger.verify_ledger()
    return LedgerVerificationResponse(
        ok=not discrepancies,
        discrepancies=[LedgerDiscrepancyResponse.model_validate(d) for d in discrepancies],
    )
