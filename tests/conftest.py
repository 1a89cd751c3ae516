from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# 앱 import 전에 설정 고정
_DB_DIR = tempfile.mkdtemp(prefix="ryoforge-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LLM_API_KEY"] = "test-llm-key"

import pytest
from fastapi.testclient import TestClient

import main
from database.session import Base, SessionLocal, engine
from domain.user import user_crud, user_schema
from security import create_access_token
from services.conversation_service import ConversationService, get_conversation_service


class FakeCompletionClient:
    def __init__(self, reply: str = "**Stay** hydrated and rest well."):
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[list[dict[str, str]]] = []

    async def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def prompt_manager():
    return main.app.state.prompt_manager


@pytest.fixture
def fake_completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def conversation_service(prompt_manager, fake_completion) -> ConversationService:
    return ConversationService(prompt_manager, fake_completion, history_window=10)


@pytest.fixture
def client(conversation_service):
    main.app.dependency_overrides[get_conversation_service] = lambda: conversation_service
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(google_id: str, name: str | None = "Maria Lopez", email: str | None = None) -> str:
        return create_access_token(
            user_schema.TokenData(
                id=google_id,
                email=email or f"{google_id}@example.com",
                name=name,
                picture=f"https://example.com/{google_id}.png",
            )
        )

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[..., dict[str, str]]:
    def _make(google_id: str, **claims) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(google_id, **claims)}"}

    return _make


@pytest.fixture
def create_user(db):
    def _create(google_id: str, name: str = "Maria Lopez"):
        return user_crud.upsert_user_from_identity(
            db,
            user_schema.TokenData(id=google_id, email=f"{google_id}@example.com", name=name),
        )

    return _create
