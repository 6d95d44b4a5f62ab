"""Shared test fixtures."""

import os
import tempfile

# Must run before ai_starter is imported: settings and the engine are built at import time.
_DB_DIR = tempfile.mkdtemp(prefix="ai_starter_tests_")
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["LLM_PROVIDER"] = "mock"
os.environ["OPENAI_API_KEY"] = ""
os.environ["API_TOKEN"] = "test-token"
os.environ["AUTH_BYPASS"] = "false"

import pytest
from fastapi.testclient import TestClient

TOKEN = "test-token"


class FakeLLMClient:
    """Stands in for LLMClient; returns a canned object or raises."""

    def __init__(self, obj=None, error=None, text="fake text"):
        self.obj = obj
        self.error = error
        self.text = text
        self.prompts = []

    async def generate_object(self, schema, prompt, system=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.obj

    async def generate_text(self, prompt, system=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture()
def fake_llm():
    return FakeLLMClient


@pytest.fixture()
def app():
    from ai_starter.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app, headers={"Authorization": f"Bearer {TOKEN}"}) as c:
        yield c


@pytest.fixture()
def anon_client(app):
    with TestClient(app) as c:
        yield c
