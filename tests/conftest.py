import pytest

from intake_engine.reference import load_tables


@pytest.fixture(scope="session")
def tables():
    return load_tables()
