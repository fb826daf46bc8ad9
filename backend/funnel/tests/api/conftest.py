from collections.abc import Generator
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from funnel import crud
from funnel.api.deps import get_db, get_llm_client
from funnel.core.db import init_db
from funnel.core.security import create_access_token
from funnel.main import app
from funnel.models import User, UserRegister

GENERATED_JSON = '{"pageTitle": "瑜珈入門", "heroTitle": "30天建立瑜珈習慣", "metaDescription": "免費瑜珈講座"}'


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="llm")
def llm_fixture() -> MagicMock:
    llm = MagicMock()
    llm.generate_page_content = AsyncMock(return_value=GENERATED_JSON)
    llm.generate_text = AsyncMock(return_value="<h2>refined</h2>")
    return llm


@pytest.fixture(name="client")
def client_fixture(session, llm) -> Generator[TestClient, None, None]:
    def get_db_override():
        return session

    app.dependency_overrides[get_db] = get_db_override
    app.dependency_overrides[get_llm_client] = lambda: llm
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="user")
def user_fixture(session) -> User:
    return crud.create_user(
        session=session,
        user_create=UserRegister(email="owner@example.com", password="changethis123", full_name="Owner"),
    )


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(user) -> dict[str, str]:
    token = create_access_token(user.id, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="other_headers")
def other_headers_fixture(session) -> dict[str, str]:
    other = crud.create_user(
        session=session,
        user_create=UserRegister(email="other@example.com", password="changethis123"),
    )
    token = create_access_token(other.id, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}
