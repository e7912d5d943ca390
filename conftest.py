import pytest

from infrastructure.container import container


@pytest.fixture(autouse=True)
def mock_infrastructure():
    """Every test starts with a fresh container wired to in-memory backends."""
    container.configure_for_testing()
    yield container
    container.reset()
