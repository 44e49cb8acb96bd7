"""
Scenario Sequence — the ordered checks run against the shop API.

Each scenario is a plain function taking a ``ScenarioContext`` and is
declared in a ``Scenario`` descriptor with its position, the session values
it needs and the ones it establishes.  The runner validates that dependency
graph before anything is sent.

Product mutation routes answer 405 without a token, cart routes answer 401.
The two are asserted separately and must not be merged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from storecheck.errors import AssertionFailure
from storecheck.executor import RequestExecutor
from storecheck.models import (
    ApiResponse,
    Cart,
    CartItemPayload,
    Credentials,
    HarnessConfig,
    HttpMethod,
    LoginResponse,
    Product,
    ProductPayload,
)
from storecheck.session import Requirement, SessionState
from storecheck.verifier import (
    FieldType,
    assert_field,
    assert_non_empty_collection,
    assert_schema,
    extract_product_id,
    product_from,
    verify_status,
    verify_status_not,
)

logger = logging.getLogger(__name__)

GET, POST, PUT, DELETE = HttpMethod.GET, HttpMethod.POST, HttpMethod.PUT, HttpMethod.DELETE


@dataclass
class ScenarioContext:
    """What every scenario gets: the session, the executor and the config."""
    session: SessionState
    executor: RequestExecutor
    config: HarnessConfig = field(default_factory=HarnessConfig)


@dataclass(frozen=True)
class Scenario:
    position: int
    name: str
    action: Callable[[ScenarioContext], None]
    requires: frozenset[Requirement] = frozenset()
    provides: frozenset[Requirement] = frozenset()
    description: str = ""


def _scenario(position, name, action, requires=(), provides=(), description=""):
    return Scenario(
        position=position,
        name=name,
        action=action,
        requires=frozenset(requires),
        provides=frozenset(provides),
        description=description,
    )


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------

def _credentials_body(ctx: ScenarioContext, password: str | None = None) -> dict:
    username, stored_password = ctx.session.require_credentials()
    return Credentials(username=username, password=password or stored_password).model_dump()


def _login(ctx: ScenarioContext) -> ApiResponse:
    """POST /login with the session credentials and store the token."""
    resp = ctx.executor.execute(POST, "/login", _credentials_body(ctx))
    verify_status(resp, 200)
    token = resp.body.get("access_token") if isinstance(resp.body, dict) else None
    ctx.session.store_token(token)
    return resp


def _product_path(product_id: int) -> str:
    return f"/products/{product_id}"


def _cart_item(ctx: ScenarioContext) -> dict:
    return CartItemPayload(
        product_id=ctx.session.require_product_id(),
        quantity=ctx.config.cart_quantity,
    ).model_dump()


# ---------------------------------------------------------------------------
# Registration & authentication
# ---------------------------------------------------------------------------

def register_user(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(POST, "/register", _credentials_body(ctx))
    verify_status(resp, 201)


def authenticate_user(ctx: ScenarioContext) -> None:
    resp = _login(ctx)
    assert_schema(resp, LoginResponse)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(ctx: ScenarioContext) -> None:
    """List the catalog, check every entry and remember the first product id."""
    resp = verify_status(ctx.executor.execute(GET, "/products"), 200)
    assert_non_empty_collection(resp, "")
    assert_field(resp, "[0].id", FieldType.NUMBER)
    assert_field(resp, "[0].name", FieldType.STRING)
    assert_field(resp, "[0].category", FieldType.STRING)
    assert_field(resp, "[0].price", FieldType.NUMBER)
    assert_field(resp, "[0].discount", FieldType.NUMBER)
    assert_schema(resp, list[Product])
    ctx.session.store_product_id(extract_product_id(resp, "[0].id"))


def add_product(ctx: ScenarioContext) -> None:
    token = ctx.session.require_token()
    resp = ctx.executor.execute(POST, "/products", ctx.config.new_product.model_dump(), token)
    verify_status(resp, 201)


def add_product_without_token(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(POST, "/products", ctx.config.new_product.model_dump())
    verify_status(resp, 405)


def get_product(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(GET, _product_path(ctx.session.require_product_id()))
    verify_status(resp, 200)
    product_from(resp)


def get_nonexistent_product(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(GET, _product_path(ctx.config.nonexistent_product_id))
    verify_status(resp, 404)


def update_product(ctx: ScenarioContext) -> None:
    token = ctx.session.require_token()
    path = _product_path(ctx.session.require_product_id())
    resp = ctx.executor.execute(PUT, path, ctx.config.updated_product.model_dump(), token)
    verify_status(resp, 200)


def update_product_without_token(ctx: ScenarioContext) -> None:
    path = _product_path(ctx.session.require_product_id())
    resp = ctx.executor.execute(PUT, path, ctx.config.updated_product.model_dump())
    verify_status(resp, 405)


def delete_product(ctx: ScenarioContext) -> None:
    token = ctx.session.require_token()
    resp = ctx.executor.execute(DELETE, _product_path(ctx.session.require_product_id()), auth_token=token)
    verify_status(resp, 200)


def delete_product_without_token(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(DELETE, _product_path(ctx.session.require_product_id()))
    verify_status(resp, 405)


# ---------------------------------------------------------------------------
# Cart (re-authenticates right before each authorised call)
# ---------------------------------------------------------------------------

def add_to_cart(ctx: ScenarioContext) -> None:
    body = _cart_item(ctx)
    _login(ctx)
    resp = ctx.executor.execute(POST, "/cart", body, ctx.session.require_token())
    verify_status(resp, 201)


def add_to_cart_without_token(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(POST, "/cart", _cart_item(ctx))
    verify_status(resp, 401)


def get_cart(ctx: ScenarioContext) -> None:
    """Fetch the cart and check totals plus the type of every item field."""
    _login(ctx)
    resp = verify_status(ctx.executor.execute(GET, "/cart", auth_token=ctx.session.require_token()), 200)
    assert_field(resp, "total_price", FieldType.NUMBER)
    assert_field(resp, "total_discount", FieldType.NUMBER)
    assert_non_empty_collection(resp, "cart")
    assert_field(resp, "cart.id", FieldType.NUMBER)
    assert_field(resp, "cart.name", FieldType.STRING)
    assert_field(resp, "cart.category", FieldType.STRING)
    assert_field(resp, "cart.price", FieldType.NUMBER)
    assert_field(resp, "cart.discount", FieldType.NUMBER)
    assert_schema(resp, Cart)


def get_cart_without_token(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(GET, "/cart")
    verify_status(resp, 401)


def remove_from_cart(ctx: ScenarioContext) -> None:
    _login(ctx)
    path = f"/cart/{ctx.session.require_product_id()}"
    resp = ctx.executor.execute(DELETE, path, auth_token=ctx.session.require_token())
    verify_status(resp, 200)


def remove_from_cart_without_token(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(DELETE, f"/cart/{ctx.session.require_product_id()}")
    verify_status(resp, 401)


# ---------------------------------------------------------------------------
# Extended boundary & round-trip checks
# ---------------------------------------------------------------------------

def register_duplicate_user(ctx: ScenarioContext) -> None:
    resp = ctx.executor.execute(POST, "/register", _credentials_body(ctx))
    verify_status_not(resp, 201)


def login_with_wrong_password(ctx: ScenarioContext) -> None:
    _, password = ctx.session.require_credentials()
    resp = ctx.executor.execute(POST, "/login", _credentials_body(ctx, password=f"{password}-wrong"))
    verify_status_not(resp, 200)


def _round_trip_payload(ctx: ScenarioContext) -> ProductPayload:
    name = f"{ctx.config.new_product.name} {ctx.session.username}"
    return ctx.config.new_product.model_copy(update={"name": name})


def _locate_created(ctx: ScenarioContext, resp: ApiResponse, payload: ProductPayload) -> int:
    """Id of the product just created, from the response or the catalog."""
    if isinstance(resp.body, dict) and "id" in resp.body:
        return extract_product_id(resp, "id")
    logger.debug("POST /products did not echo an id, searching the catalog")
    listing = verify_status(ctx.executor.execute(GET, "/products"), 200)
    products = assert_schema(listing, list[Product])
    matches = [p.id for p in products if p.name == payload.name]
    if not matches:
        raise AssertionFailure(
            f"Created product '{payload.name}' is not in the catalog",
            expected=payload.name,
            actual=[p.name for p in products],
        )
    return matches[-1]


def create_and_fetch_product(ctx: ScenarioContext) -> None:
    _login(ctx)
    payload = _round_trip_payload(ctx)
    resp = ctx.executor.execute(POST, "/products", payload.model_dump(), ctx.session.require_token())
    verify_status(resp, 201)
    ctx.session.store_created_product_id(_locate_created(ctx, resp, payload))

    fetched = ctx.executor.execute(GET, _product_path(ctx.session.require_created_product_id()))
    verify_status(fetched, 200)
    product_from(fetched)


def update_created_product(ctx: ScenarioContext) -> None:
    path = _product_path(ctx.session.require_created_product_id())
    update = ctx.config.updated_product
    resp = ctx.executor.execute(PUT, path, update.model_dump(), ctx.session.require_token())
    verify_status(resp, 200)

    product = product_from(verify_status(ctx.executor.execute(GET, path), 200))
    seen = ProductPayload(
        name=product.name, category=product.category, price=product.price, discount=product.discount,
    )
    if seen != update:
        raise AssertionFailure(
            f"GET {path} does not reflect the update",
            expected=update.model_dump(),
            actual=seen.model_dump(),
        )


def delete_created_product(ctx: ScenarioContext) -> None:
    path = _product_path(ctx.session.require_created_product_id())
    resp = ctx.executor.execute(DELETE, path, auth_token=ctx.session.require_token())
    verify_status(resp, 200)
    verify_status(ctx.executor.execute(GET, path), 404)


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------

CRED, TOKEN, PID = Requirement.CREDENTIALS, Requirement.TOKEN, Requirement.PRODUCT_ID
CREATED = Requirement.CREATED_PRODUCT_ID

CORE_SCENARIOS: list[Scenario] = [
    _scenario(1, "Register new user", register_user, [CRED],
              description="POST /register → 201"),
    _scenario(2, "Authenticate user", authenticate_user, [CRED], [TOKEN],
              description="POST /login → 200 with access_token"),
    _scenario(3, "List products and extract product id", list_products, [], [PID],
              description="GET /products → 200, non-empty, first id stored"),
    _scenario(4, "Add new product", add_product, [TOKEN],
              description="POST /products with token → 201"),
    _scenario(5, "Add new product without token", add_product_without_token,
              description="POST /products without token → 405"),
    _scenario(6, "Get product information", get_product, [PID],
              description="GET /products/{id} → 200"),
    _scenario(7, "Get nonexistent product", get_nonexistent_product,
              description="GET /products/99999 → 404"),
    _scenario(8, "Update product information", update_product, [TOKEN, PID],
              description="PUT /products/{id} with token → 200"),
    _scenario(9, "Update product without token", update_product_without_token, [PID],
              description="PUT /products/{id} without token → 405"),
    _scenario(10, "Delete product", delete_product, [TOKEN, PID],
              description="DELETE /products/{id} with token → 200"),
    _scenario(11, "Delete product without token", delete_product_without_token, [PID],
              description="DELETE /products/{id} without token → 405"),
    _scenario(12, "Add product to cart", add_to_cart, [CRED, PID], [TOKEN],
              description="re-login, POST /cart → 201"),
    _scenario(13, "Add product to cart without token", add_to_cart_without_token, [PID],
              description="POST /cart without token → 401"),
    _scenario(14, "Get shopping cart", get_cart, [CRED], [TOKEN],
              description="re-login, GET /cart → 200, totals and item types"),
    _scenario(15, "Get shopping cart without token", get_cart_without_token,
              description="GET /cart without token → 401"),
    _scenario(16, "Remove product from cart", remove_from_cart, [CRED, PID], [TOKEN],
              description="re-login, DELETE /cart/{id} → 200"),
    _scenario(17, "Remove product from cart without token", remove_from_cart_without_token, [PID],
              description="DELETE /cart/{id} without token → 401"),
]

EXTENDED_SCENARIOS: list[Scenario] = [
    _scenario(18, "Register the same user twice", register_duplicate_user, [CRED],
              description="POST /register with a taken username → not 201"),
    _scenario(19, "Authenticate with wrong password", login_with_wrong_password, [CRED],
              description="POST /login with a bad password → not 200"),
    _scenario(20, "Create product and fetch it", create_and_fetch_product, [CRED], [TOKEN, CREATED],
              description="POST /products then GET /products/{id} → 200"),
    _scenario(21, "Update created product and fetch it", update_created_product, [TOKEN, CREATED],
              description="PUT /products/{id} then GET reflects the update"),
    _scenario(22, "Delete created product and fetch it", delete_created_product, [TOKEN, CREATED],
              description="DELETE /products/{id} then GET → 404"),
]


def build_sequence(config: HarnessConfig) -> list[Scenario]:
    """Scenarios to run for *config*, in execution order."""
    if config.extended:
        return CORE_SCENARIOS + EXTENDED_SCENARIOS
    return list(CORE_SCENARIOS)
