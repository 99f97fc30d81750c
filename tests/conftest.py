import pytest

from tests.token_helpers import NOW


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def secret() -> str:
    return "test-secret"
