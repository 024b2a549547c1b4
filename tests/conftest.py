import pytest

from baton.config import reset_defaults


@pytest.fixture
def alist():
    """Convert async generator to list."""

    async def _alist(async_gen):
        result = []
        async for item in async_gen:
            result.append(item)
        return result

    return _alist


@pytest.fixture(autouse=True)
def defaults(monkeypatch):
    monkeypatch.delenv("BATON_DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("BATON_TRACING_DISABLED", raising=False)
    reset_defaults()
    yield
    reset_defaults()
