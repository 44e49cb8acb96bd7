"""
Session state shared by the ordered scenarios.

One ``SessionState`` is created by the runner's setup phase and handed to
every scenario through the ``ScenarioContext``.  The ``store_*`` setters are
the only mutation path; dependent values are read through ``require_*`` so a
missing upstream step shows up as a named precondition failure.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass

from storecheck.errors import PreconditionMissing

logger = logging.getLogger(__name__)


class Requirement(str, enum.Enum):
    """Session values a scenario can depend on or establish."""
    CREDENTIALS = "credentials"
    TOKEN = "token"
    PRODUCT_ID = "product_id"
    CREATED_PRODUCT_ID = "created_product_id"


# Last stamp handed out, so usernames stay unique within the process even
# when two sessions start in the same second.
_stamp_lock = threading.Lock()
_last_stamp = 0


def _next_stamp() -> int:
    global _last_stamp
    with _stamp_lock:
        stamp = max(int(time.time()), _last_stamp + 1)
        _last_stamp = stamp
        return stamp


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass
class SessionState:
    username: str | None = None
    password: str | None = None
    access_token: str | None = None
    product_id: int | None = None
    created_product_id: int | None = None

    # ── setters ────────────────────────────────────────────────────────
    def generate_credentials(self, prefix: str = "user", password: str = "password") -> tuple[str, str]:
        """Create a username unique to this run, e.g. ``user1710684000``."""
        self.username = f"{prefix}{_next_stamp()}"
        self.password = password
        logger.info("Generated credentials for %s", self.username)
        return self.username, self.password

    def store_token(self, token: str | None) -> None:
        if not isinstance(token, str) or not token:
            raise PreconditionMissing(
                "Access token should not be null", expected="non-empty token", actual=token,
            )
        self.access_token = token
        logger.debug("Stored access token (%d chars)", len(token))

    def store_product_id(self, value: object) -> None:
        if not _is_positive_int(value):
            raise PreconditionMissing(
                "Product ID should be positive", expected="positive integer", actual=value,
            )
        self.product_id = value
        logger.debug("Stored product id %d", value)

    def store_created_product_id(self, value: object) -> None:
        if not _is_positive_int(value):
            raise PreconditionMissing(
                "Created product ID should be positive", expected="positive integer", actual=value,
            )
        self.created_product_id = value

    # ── guarded getters ────────────────────────────────────────────────
    def require_credentials(self) -> tuple[str, str]:
        if not self.username or self.password is None:
            raise PreconditionMissing(
                "Credentials should be generated before registering or logging in",
                expected="username/password",
            )
        return self.username, self.password

    def require_token(self) -> str:
        if not self.access_token:
            raise PreconditionMissing("Access token should not be null", expected="token")
        return self.access_token

    def require_product_id(self) -> int:
        if self.product_id is None:
            raise PreconditionMissing(
                "Product ID should not be null; the product listing step must run first",
                expected="product id",
            )
        return self.product_id

    def require_created_product_id(self) -> int:
        if self.created_product_id is None:
            raise PreconditionMissing(
                "Created product ID should not be null; the product creation step must run first",
                expected="created product id",
            )
        return self.created_product_id

    def has(self, requirement: Requirement) -> bool:
        if requirement == Requirement.CREDENTIALS:
            return bool(self.username) and self.password is not None
        if requirement == Requirement.TOKEN:
            return bool(self.access_token)
        if requirement == Requirement.PRODUCT_ID:
            return self.product_id is not None
        return self.created_product_id is not None

    def require(self, requirement: Requirement) -> None:
        """Raise ``PreconditionMissing`` unless *requirement* is satisfied."""
        getter = {
            Requirement.CREDENTIALS: self.require_credentials,
            Requirement.TOKEN: self.require_token,
            Requirement.PRODUCT_ID: self.require_product_id,
            Requirement.CREATED_PRODUCT_ID: self.require_created_product_id,
        }[requirement]
        getter()
