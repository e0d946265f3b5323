import pytest

from tests.fixtures_data import build_session_factory


@pytest.fixture()
def db():
    session = build_session_factory()()
    try:
        yield session
    finally:
        session.close()
