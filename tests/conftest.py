import pytest
from procbridge.signature import clear_signature_cache


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear the reflected signature cache before and after each test."""
    clear_signature_cache()
    yield
    clear_signature_cache()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.contracts',
]
