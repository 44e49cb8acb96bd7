"""
Core data models for storecheck.

Defines the request/response wrappers used by the executor, the structural
types the shop API must answer with, the request payloads the scenarios send,
and the harness configuration.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class HttpMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def carries_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT)


# ---------------------------------------------------------------------------
# Request / response wrappers
# ---------------------------------------------------------------------------

class RequestDescriptor(BaseModel):
    """One HTTP call as the scenarios describe it."""
    method: HttpMethod
    path: str = Field(..., description="Server-relative route, e.g. /products/3")
    body: Any = Field(None, description="JSON payload, only sent for POST/PUT")
    auth_token: str | None = Field(None, description="Sent as a bearer credential when set")


class ApiResponse(BaseModel):
    """Everything the verifier needs from one HTTP exchange."""
    method: HttpMethod
    path: str
    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    text: str = ""
    latency_ms: float = 0.0

    @property
    def is_json(self) -> bool:
        return self.body is not None


# ---------------------------------------------------------------------------
# Shop API contracts (validated strictly: "1.5" is not a number)
# ---------------------------------------------------------------------------

class _Contract(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class Product(_Contract):
    id: PositiveInt
    name: str
    category: str
    price: float
    discount: float


class Cart(_Contract):
    total_price: float
    total_discount: float
    cart: list[Product]


class LoginResponse(_Contract):
    access_token: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------

class Credentials(BaseModel):
    """Body of POST /register and POST /login."""
    username: str
    password: str


class ProductPayload(BaseModel):
    """Body of POST /products and PUT /products/{id}."""
    name: str
    category: str
    price: float
    discount: float


class CartItemPayload(BaseModel):
    """Body of POST /cart."""
    product_id: int
    quantity: int = 1


# ---------------------------------------------------------------------------
# Harness configuration
# ---------------------------------------------------------------------------

class HarnessConfig(BaseModel):
    """Top-level harness configuration."""
    base_url: str = "http://127.0.0.1:8000"
    timeout: float | None = Field(None, description="Per-request timeout in seconds, None waits forever")
    username_prefix: str = "user"
    password: str = "password"
    nonexistent_product_id: int = 99999
    cart_quantity: int = 2
    new_product: ProductPayload = Field(
        default_factory=lambda: ProductPayload(
            name="New Product", category="Electronics", price=12.99, discount=5,
        )
    )
    updated_product: ProductPayload = Field(
        default_factory=lambda: ProductPayload(
            name="Updated Product Name", category="Electronics", price=15.99, discount=8,
        )
    )
    extended: bool = Field(False, description="Also run the boundary/round-trip scenarios")
    log_level: str = "INFO"
