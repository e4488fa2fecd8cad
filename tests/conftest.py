# third parties
import pytest

# Graasp backends
from graasp.backends.tree import Limits, LocalStorage

# Graasp utilities
from graasp.utils.context import Context, InMemoryReporter


@pytest.fixture
def reporter() -> InMemoryReporter:
    return InMemoryReporter()


@pytest.fixture
def context(reporter: InMemoryReporter) -> Context:
    return Context(logs_reporters=[reporter], data_reporters=[reporter])


@pytest.fixture
def storage() -> LocalStorage:
    return LocalStorage()


@pytest.fixture
def limits() -> Limits:
    return Limits()
