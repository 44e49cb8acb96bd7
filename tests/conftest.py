"""Shared fixtures: an in-process shop API and a session wired to it."""

import pytest

from storecheck.executor import RequestExecutor
from storecheck.models import HarnessConfig
from storecheck.scenarios import ScenarioContext
from storecheck.session import SessionState
from tests.mock_shop import MockShop


@pytest.fixture
def shop() -> MockShop:
    return MockShop()


@pytest.fixture
def executor(shop: MockShop):
    with RequestExecutor(client=shop.get_test_client()) as ex:
        yield ex


@pytest.fixture
def config() -> HarnessConfig:
    return HarnessConfig(base_url="http://testserver")


@pytest.fixture
def session(config: HarnessConfig) -> SessionState:
    s = SessionState()
    s.generate_credentials(config.username_prefix, config.password)
    return s


@pytest.fixture
def ctx(session: SessionState, executor: RequestExecutor, config: HarnessConfig) -> ScenarioContext:
    return ScenarioContext(session=session, executor=executor, config=config)
