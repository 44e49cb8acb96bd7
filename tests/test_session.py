"""
Tests for session state.
"""

import pytest

from storecheck.errors import PreconditionMissing
from storecheck.session import Requirement, SessionState


def test_generate_credentials_format():
    s = SessionState()
    username, password = s.generate_credentials("user", "password")
    assert username.startswith("user")
    assert username[len("user"):].isdigit()
    assert password == "password"
    assert (s.username, s.password) == (username, password)


def test_generated_usernames_are_unique():
    names = {SessionState().generate_credentials()[0] for _ in range(5)}
    assert len(names) == 5


def test_store_token():
    s = SessionState()
    s.store_token("abc123")
    assert s.require_token() == "abc123"
    assert s.has(Requirement.TOKEN)


@pytest.mark.parametrize("token", [None, ""])
def test_store_token_rejects_empty(token):
    s = SessionState()
    with pytest.raises(PreconditionMissing, match="Access token should not be null"):
        s.store_token(token)
    assert s.access_token is None


def test_store_product_id():
    s = SessionState()
    s.store_product_id(7)
    assert s.require_product_id() == 7


@pytest.mark.parametrize("value", [0, -3, True, "5", 2.0, None])
def test_store_product_id_rejects_non_positive_ints(value):
    s = SessionState()
    with pytest.raises(PreconditionMissing, match="positive"):
        s.store_product_id(value)
    assert s.product_id is None


def test_missing_values_raise_preconditions():
    s = SessionState()
    with pytest.raises(PreconditionMissing, match="Access token should not be null"):
        s.require_token()
    with pytest.raises(PreconditionMissing, match="Product ID"):
        s.require_product_id()
    with pytest.raises(PreconditionMissing, match="Credentials"):
        s.require_credentials()
    with pytest.raises(PreconditionMissing):
        s.require(Requirement.CREATED_PRODUCT_ID)


def test_precondition_is_an_assertion_error():
    with pytest.raises(AssertionError):
        SessionState().require_token()


def test_has_tracks_requirements():
    s = SessionState()
    assert not any(s.has(r) for r in Requirement)
    s.generate_credentials()
    s.store_token("t")
    s.store_product_id(1)
    s.store_created_product_id(9)
    assert all(s.has(r) for r in Requirement)
