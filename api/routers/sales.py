"""
Sales API Endpoints.

CRUD over sales plus the sale and item cancellation workflows. All endpoints
require a bearer token.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response, status

from api.dependencies import CurrentUser, SaleServiceDep
from api.models import (
    CreateSaleRequest,
    ErrorResponse,
    SaleItemRequest,
    SaleItemResponse,
    SaleListResponse,
    SaleResponse,
    UpdateSaleRequest,
)
from domain.sale import NewItem, Sale

router = APIRouter()

_NOT_FOUND = {404: {"model": ErrorResponse}}
_BAD_REQUEST = {400: {"model": ErrorResponse}}


def _to_new_items(items: List[SaleItemRequest]) -> List[NewItem]:
    return [
        NewItem(
            product_id=i.product_id,
            product_name=i.product_name,
            quantity=i.quantity,
            unit_price=i.unit_price,
        )
        for i in items
    ]


def to_sale_response(sale: Sale) -> SaleResponse:
    """Map the aggregate 1:1 to the response shape."""

    return SaleResponse(
        sale_id=sale.sale_id,
        sale_number=sale.sale_number,
        sale_date=sale.sale_date,
        customer_id=sale.customer_id,
        customer_name=sale.customer_name,
        branch_id=sale.branch_id,
        branch_name=sale.branch_name,
        total_amount=sale.total_amount,
        cancelled=sale.cancelled,
        created_at=sale.created_at,
        updated_at=sale.updated_at,
        items=[
            SaleItemResponse(
                item_id=item.item_id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount_percent=item.discount_percent,
                total_amount=item.total_amount,
                cancelled=item.cancelled,
            )
            for item in sale.items
        ],
    )


@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List Sales",
    description="Paginated sales, newest sale date first.",
)
def list_sales(
    service: SaleServiceDep,
    user: CurrentUser,
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(20, description="Items per page (max 200)"),
):
    """
    List sales.

    Out-of-range paging values are normalized: `page` below 1 becomes 1 and
    `page_size` outside 1..200 becomes 20. The response echoes the values used.
    """
    result = service.list_sales(page, page_size)
    return SaleListResponse(
        page=result.page,
        page_size=result.page_size,
        items=[to_sale_response(s) for s in result.items],
    )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleResponse,
    responses=_NOT_FOUND,
    summary="Get Sale",
)
def get_sale(sale_id: UUID, service: SaleServiceDep, user: CurrentUser):
    return to_sale_response(service.get_sale(sale_id))


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_BAD_REQUEST,
    summary="Create Sale",
    description="Create a sale. Discounts and totals are computed by the server.",
)
def create_sale(
    request: CreateSaleRequest,
    http_request: Request,
    response: Response,
    service: SaleServiceDep,
    user: CurrentUser,
):
    """
    Create a sale.

    **Discount tiers (per item line):**
    - 1-3 identical items: no discount
    - 4-9 identical items: 10%
    - 10-20 identical items: 20%
    - above 20 identical items: rejected

    Publishes a `sale.created` integration event.
    """
    sale = service.create_sale(
        sale_number=request.sale_number,
        sale_date=request.sale_date,
        customer_id=request.customer_id,
        customer_name=request.customer_name,
        branch_id=request.branch_id,
        branch_name=request.branch_name,
        items=_to_new_items(request.items),
    )
    response.headers["Location"] = str(http_request.url_for("get_sale", sale_id=str(sale.sale_id)))
    return to_sale_response(sale)


@router.put(
    "/sales/{sale_id}",
    response_model=SaleResponse,
    responses={**_NOT_FOUND, **_BAD_REQUEST},
    summary="Update Sale",
    description="Update header fields and replace all items.",
)
def update_sale(sale_id: UUID, request: UpdateSaleRequest, service: SaleServiceDep, user: CurrentUser):
    """
    Update a sale.

    Omitted header fields keep their values. The item list always replaces
    the existing items (new item ids, discounts recomputed).

    Publishes a `sale.modified` integration event.
    """
    sale = service.update_sale(
        sale_id,
        sale_number=request.sale_number,
        sale_date=request.sale_date,
        customer_id=request.customer_id,
        customer_name=request.customer_name,
        branch_id=request.branch_id,
        branch_name=request.branch_name,
        items=_to_new_items(request.items),
    )
    return to_sale_response(sale)


@router.delete(
    "/sales/{sale_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Sale",
)
def delete_sale(sale_id: UUID, service: SaleServiceDep, user: CurrentUser):
    service.delete_sale(sale_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/sales/{sale_id}/cancel",
    response_model=SaleResponse,
    responses=_NOT_FOUND,
    summary="Cancel Sale",
)
def cancel_sale(sale_id: UUID, service: SaleServiceDep, user: CurrentUser):
    """Cancel a sale and all of its items. Publishes `sale.cancelled`."""
    return to_sale_response(service.cancel_sale(sale_id))


@router.post(
    "/sales/{sale_id}/items/{item_id}/cancel",
    response_model=SaleResponse,
    responses=_NOT_FOUND,
    summary="Cancel Sale Item",
)
def cancel_item(sale_id: UUID, item_id: UUID, service: SaleServiceDep, user: CurrentUser):
    """Cancel a single item. Publishes `sale.item_cancelled`."""
    return to_sale_response(service.cancel_item(sale_id, item_id))
