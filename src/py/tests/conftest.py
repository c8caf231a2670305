from collections.abc import Generator

import pytest

# Environment variables that may affect test behavior - clear before each test
_INERTIA_ENV_VARS = [
    "INERTIA_VERSION",
    "INERTIA_ENCRYPT_HISTORY",
]


@pytest.fixture(autouse=True)
def clean_inertia_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear Inertia-related environment variables before each test for isolation."""
    for var in _INERTIA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
