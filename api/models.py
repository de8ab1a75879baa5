"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from domain.sale import MAX_IDENTICAL_ITEMS, QUANTITY_LIMIT_MESSAGE


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# ============================================================================
# Sale Request Models
# ============================================================================

class SaleItemRequest(BaseModel):
    """Single line item in a create/update request."""
    product_id: str = Field(..., min_length=1, max_length=64)
    product_name: str = Field(..., min_length=1, max_length=256)
    quantity: int = Field(..., gt=0, description="1 to 20 identical items")
    unit_price: Decimal = Field(..., gt=0)

    @field_validator("product_id", "product_name")
    @classmethod
    def _require_text(cls, value: str) -> str:
        return _not_blank(value)  # type: ignore[return-value]

    @field_validator("quantity")
    @classmethod
    def _quantity_limit(cls, value: int) -> int:
        if value > MAX_IDENTICAL_ITEMS:
            raise ValueError(QUANTITY_LIMIT_MESSAGE)
        return value


class CreateSaleRequest(BaseModel):
    """Request to create a sale."""
    sale_number: str = Field(..., min_length=1, max_length=64)
    sale_date: Optional[datetime] = None
    customer_id: str = Field(..., min_length=1, max_length=64)
    customer_name: str = Field(..., min_length=1, max_length=256)
    branch_id: str = Field(..., min_length=1, max_length=64)
    branch_name: str = Field(..., min_length=1, max_length=256)
    items: List[SaleItemRequest] = Field(..., min_length=1)

    @field_validator("sale_number", "customer_id", "customer_name", "branch_id", "branch_name")
    @classmethod
    def _require_text(cls, value: str) -> str:
        return _not_blank(value)  # type: ignore[return-value]

    class Config:
        json_schema_extra = {
            "example": {
                "sale_number": "S-0001",
                "sale_date": "2025-01-01T12:00:00Z",
                "customer_id": "cust-1",
                "customer_name": "Demo Customer",
                "branch_id": "br-1",
                "branch_name": "Main Branch",
                "items": [
                    {"product_id": "p-1", "product_name": "Demo Product A", "quantity": 3, "unit_price": "10.00"},
                    {"product_id": "p-2", "product_name": "Demo Product B", "quantity": 5, "unit_price": "20.00"}
                ]
            }
        }


class UpdateSaleRequest(BaseModel):
    """
    Request to update a sale.

    Header fields are optional (omitted means unchanged). `items` is required
    and replaces all current items; it may be empty.
    """
    sale_number: Optional[str] = Field(None, min_length=1, max_length=64)
    sale_date: Optional[datetime] = None
    customer_id: Optional[str] = Field(None, min_length=1, max_length=64)
    customer_name: Optional[str] = Field(None, min_length=1, max_length=256)
    branch_id: Optional[str] = Field(None, min_length=1, max_length=64)
    branch_name: Optional[str] = Field(None, min_length=1, max_length=256)
    items: List[SaleItemRequest]

    @field_validator("sale_number", "customer_id", "customer_name", "branch_id", "branch_name")
    @classmethod
    def _require_text(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


# ============================================================================
# Sale Response Models
# ============================================================================

class SaleItemResponse(BaseModel):
    """Single line item in a sale response."""
    item_id: UUID
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal
    total_amount: Decimal
    cancelled: bool


class SaleResponse(BaseModel):
    """Sale with its items."""
    sale_id: UUID
    sale_number: str
    sale_date: datetime
    customer_id: str
    customer_name: str
    branch_id: str
    branch_name: str
    total_amount: Decimal
    cancelled: bool
    created_at: datetime
    updated_at: datetime
    items: List[SaleItemResponse]

    class Config:
        json_schema_extra = {
            "example": {
                "sale_id": "123e4567-e89b-12d3-a456-426614174000",
                "sale_number": "S-0001",
                "sale_date": "2025-01-01T12:00:00Z",
                "customer_id": "cust-1",
                "customer_name": "Demo Customer",
                "branch_id": "br-1",
                "branch_name": "Main Branch",
                "total_amount": "120.00",
                "cancelled": False,
                "created_at": "2025-01-01T12:00:00Z",
                "updated_at": "2025-01-01T12:00:00Z",
                "items": [
                    {
                        "item_id": "123e4567-e89b-12d3-a456-426614174001",
                        "product_id": "p-1",
                        "product_name": "Demo Product A",
                        "quantity": 3,
                        "unit_price": "10.00",
                        "discount_percent": "0.00",
                        "total_amount": "30.00",
                        "cancelled": False
                    }
                ]
            }
        }


class SaleListResponse(BaseModel):
    """One page of sales."""
    page: int
    page_size: int
    items: List[SaleResponse]


# ============================================================================
# Auth Models
# ============================================================================

class LoginRequest(BaseModel):
    """Operator credentials."""
    username: str = ""
    password: str = ""


class LoginData(BaseModel):
    token: str


class LoginResponse(BaseModel):
    """Successful login envelope."""
    success: bool
    message: Optional[str] = None
    data: LoginData


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
    field: Optional[str] = None
    kind: Optional[str] = None
    errors: Optional[List[Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "message": "It's not possible to sell above 20 identical items",
                "field": "quantity",
                "kind": "quantity-limit-exceeded"
            }
        }
