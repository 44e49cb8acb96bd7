"""
Response Verifier — status and body-shape assertions.

Status checks come first and are always hard failures.  Shape checks are
layered on top by the scenarios that need them:

  1. **Field checks** — a JSON path plus an expected ``FieldType``.  A key
     applied to a list projects over its elements, so ``cart.price`` means
     "the price of every cart item" and every one must match.
  2. **Schema checks** — the whole body validated against a declared
     structural type (``Product``, ``Cart``, ``list[Product]``), reporting
     every mismatch by location.

Path syntax: ``""`` (root), ``total_price``, ``[0].id``, ``cart.price``.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Any, get_origin

from pydantic import TypeAdapter, ValidationError

from storecheck.errors import FieldMissing, SchemaMismatch, StatusMismatch
from storecheck.models import ApiResponse, Product

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\[(\d+)\]|([^.\[\]]+)")
_EXCERPT = 200


# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

class FieldType(str, enum.Enum):
    NUMBER = "number"
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    def matches(self, value: Any) -> bool:
        if self == FieldType.BOOLEAN:
            return isinstance(value, bool)
        if isinstance(value, bool):
            return False
        if self == FieldType.NUMBER:
            return isinstance(value, (int, float))
        if self == FieldType.INTEGER:
            return isinstance(value, int)
        if self == FieldType.STRING:
            return isinstance(value, str)
        if self == FieldType.ARRAY:
            return isinstance(value, list)
        return isinstance(value, dict)


def _describe(response: ApiResponse) -> str:
    return f"{response.method.value} {response.path}"


def _excerpt(response: ApiResponse) -> str:
    text = response.text.strip()
    if len(text) > _EXCERPT:
        text = text[:_EXCERPT] + "…"
    return text


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

def verify_status(response: ApiResponse, expected: int) -> ApiResponse:
    """Fail unless the status code is exactly *expected*; returns *response*."""
    if response.status_code != expected:
        body = _excerpt(response)
        raise StatusMismatch(
            f"Expected status {expected} for {_describe(response)}, got {response.status_code}"
            + (f" — body: {body}" if body else ""),
            expected=expected,
            actual=response.status_code,
        )
    return response


def verify_status_not(response: ApiResponse, unexpected: int) -> ApiResponse:
    """Fail if the status code equals *unexpected*; returns *response*."""
    if response.status_code == unexpected:
        raise StatusMismatch(
            f"Status {unexpected} must not be returned for {_describe(response)}",
            expected=f"anything but {unexpected}",
            actual=response.status_code,
        )
    return response


# ---------------------------------------------------------------------------
# JSON path resolution
# ---------------------------------------------------------------------------

def resolve_path(body: Any, path: str) -> tuple[Any, bool]:
    """
    Resolve *path* inside *body*.

    Returns ``(value, projected)`` where ``projected`` is True when a key was
    applied across a list and ``value`` is the list of per-element values.
    Raises ``FieldMissing`` if any step does not resolve.
    """
    current = body
    projected = False
    for match in _TOKEN.finditer(path):
        index, key = match.group(1), match.group(2)
        if index is not None:
            i = int(index)
            if not isinstance(current, list) or i >= len(current):
                raise FieldMissing(f"Path '{path}': no element [{i}]", expected=path, actual=current)
            current = current[i]
            projected = False
        elif isinstance(current, dict):
            if key not in current:
                raise FieldMissing(f"Path '{path}': no field '{key}'", expected=path, actual=sorted(current))
            current = current[key]
        elif isinstance(current, list):
            missing = [n for n, item in enumerate(current) if not isinstance(item, dict) or key not in item]
            if missing:
                raise FieldMissing(
                    f"Path '{path}': field '{key}' absent in element(s) {missing}",
                    expected=path,
                    actual=None,
                )
            current = [item[key] for item in current]
            projected = True
        else:
            raise FieldMissing(
                f"Path '{path}': cannot read '{key}' from {type(current).__name__}",
                expected=path,
                actual=current,
            )
    return current, projected


# ---------------------------------------------------------------------------
# Field assertions
# ---------------------------------------------------------------------------

def assert_field(response: ApiResponse, path: str, field_type: FieldType) -> Any:
    """
    Assert that *path* exists and holds a *field_type* value.

    For a projected path every element must match.  Returns the value.
    """
    value, projected = resolve_path(response.body, path)
    if projected:
        bad = [(n, v) for n, v in enumerate(value) if not field_type.matches(v)]
        if bad:
            n, v = bad[0]
            raise SchemaMismatch(
                f"{_describe(response)}: every '{path}' should be a {field_type.value}, "
                f"element {n} is {type(v).__name__} {v!r}",
                expected=field_type.value,
                actual=v,
            )
    elif not field_type.matches(value):
        raise SchemaMismatch(
            f"{_describe(response)}: '{path}' should be a {field_type.value}, "
            f"got {type(value).__name__} {value!r}",
            expected=field_type.value,
            actual=value,
        )
    return value


def assert_non_empty_collection(response: ApiResponse, path: str = "") -> list[Any]:
    """Assert that *path* is a list with at least one element; returns it."""
    value, _ = resolve_path(response.body, path)
    if not isinstance(value, list):
        raise SchemaMismatch(
            f"{_describe(response)}: '{path or '<root>'}' should be a list, got {type(value).__name__}",
            expected=FieldType.ARRAY.value,
            actual=value,
        )
    if not value:
        raise SchemaMismatch(
            f"{_describe(response)}: '{path or '<root>'}' should not be empty",
            expected="non-empty list",
            actual=value,
        )
    return value


def extract_product_id(response: ApiResponse, path: str) -> int:
    """Read a product id at *path*; it must be a strictly positive integer."""
    value = assert_field(response, path, FieldType.INTEGER)
    if value <= 0:
        raise SchemaMismatch(
            f"{_describe(response)}: Product ID should be positive, got {value}",
            expected="> 0",
            actual=value,
        )
    return value


# ---------------------------------------------------------------------------
# Schema assertions
# ---------------------------------------------------------------------------

def _format_errors(exc: ValidationError) -> list[str]:
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"{loc}: {err['msg']} (got {err.get('input')!r})")
    return lines


def assert_schema(response: ApiResponse, schema: Any) -> Any:
    """
    Validate the body against *schema* (a pydantic model or a type such as
    ``list[Product]``).  Returns the validated object.
    """
    name = str(schema).replace("storecheck.models.", "") if get_origin(schema) else schema.__name__
    if not response.is_json:
        raise SchemaMismatch(
            f"{_describe(response)}: expected a {name} body, got an empty/non-JSON payload",
            expected=name,
            actual=_excerpt(response),
        )
    try:
        return TypeAdapter(schema).validate_python(response.body)
    except ValidationError as exc:
        problems = _format_errors(exc)
        logger.debug("Schema %s rejected %s: %s", name, _describe(response), problems)
        raise SchemaMismatch(
            f"{_describe(response)}: body does not match {name}: " + "; ".join(problems),
            expected=name,
            actual=problems,
        ) from exc


def product_from(response: ApiResponse) -> Product:
    """
    Validate a single-product response.

    Some deployments answer ``GET /products/{id}`` with a one-element list
    instead of an object; both are accepted.
    """
    if isinstance(response.body, list):
        products = assert_schema(response, list[Product])
        if not products:
            raise SchemaMismatch(
                f"{_describe(response)}: product list is empty",
                expected="one product",
                actual=[],
            )
        return products[0]
    return assert_schema(response, Product)
