"""Shared pytest fixtures and in-memory fakes for the Prism tests.

Nothing here talks to the network: Gemini is replaced by ``FakeProvider``,
Supabase (auth, storage and tables) by ``FakeSupabaseClient``.
"""

from __future__ import annotations

import base64
from io import BytesIO
from types import SimpleNamespace
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from shared.config import Settings
from shared.db_supabase import SupabaseRecordStore
from shared.errors import ProviderError
from shared.image_generation import ImageGenerationProvider
from shared.storage_supabase import ArtifactStore
from web_api.auth import SupabaseAuthVerifier
from web_api.main import create_app


# ---------------------------------------------------------------------------
# Fakes.
# ---------------------------------------------------------------------------


class FakeProvider(ImageGenerationProvider):
    """Returns a canned base64 payload, or raises the configured error."""

    def __init__(self, payload: Optional[str] = None, error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        if not self.payload:
            raise ProviderError("No image data received from Gemini")
        return self.payload

    @property
    def name(self) -> str:
        return "fake"


class FakeBucket:
    def __init__(self, client: "FakeSupabaseClient", name: str):
        self.client = client
        self.name = name

    def upload(self, path: str, file: bytes, file_options: Optional[dict] = None):
        if self.client.fail_upload:
            raise RuntimeError("bucket unavailable")
        key = (self.name, path)
        if key in self.client.objects:
            raise RuntimeError("The resource already exists")
        self.client.objects[key] = {"data": file, "options": dict(file_options or {})}
        self.client.uploads.append(key)
        return SimpleNamespace(path=path, full_path=f"{self.name}/{path}")

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths: list[str]):
        if self.client.fail_remove:
            raise RuntimeError("remove failed")
        for path in paths:
            self.client.objects.pop((self.name, path), None)
            self.client.removed.append((self.name, path))
        return []


class FakeStorage:
    def __init__(self, client: "FakeSupabaseClient"):
        self.client = client

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.client, bucket)


class FakeInsert:
    def __init__(self, client: "FakeSupabaseClient", table: str, row: dict):
        self.client = client
        self.table = table
        self.row = row

    def execute(self):
        if self.client.fail_insert:
            raise RuntimeError("insert violates row-level security policy")
        self.client.id_counter += 1
        stored = dict(self.row)
        stored["id"] = f"rec-{self.client.id_counter}"
        stored["created_at"] = "2026-10-19T12:00:00+00:00"
        for column in self.client.drop_columns:
            stored.pop(column, None)
        self.client.rows.setdefault(self.table, []).append(stored)
        return SimpleNamespace(data=[stored])


class FakeTable:
    def __init__(self, client: "FakeSupabaseClient", name: str):
        self.client = client
        self.name = name

    def insert(self, row: dict) -> FakeInsert:
        return FakeInsert(self.client, self.name, row)


class FakeAuth:
    def __init__(self, users: dict[str, str]):
        self.users = users

    def get_user(self, jwt: Optional[str] = None):
        if jwt not in self.users:
            raise RuntimeError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=SimpleNamespace(id=self.users[jwt], email=f"{self.users[jwt]}@example.com"))


class FakeSupabaseClient:
    """Just enough of supabase.Client for auth, storage and table inserts."""

    def __init__(self, users: Optional[dict[str, str]] = None):
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.uploads: list[tuple[str, str]] = []
        self.removed: list[tuple[str, str]] = []
        self.rows: dict[str, list[dict]] = {}
        self.id_counter = 0
        self.fail_upload = False
        self.fail_insert = False
        self.fail_remove = False
        self.drop_columns: list[str] = []
        self.storage = FakeStorage(self)
        self.auth = FakeAuth(users or {})

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)


# ---------------------------------------------------------------------------
# Fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny PNG, the format Gemini returns."""
    buf = BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        GOOGLE_AI_API_KEY="test-google-key",
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
    )


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient(users={"token-u1": "U1", "token-u2": "U2"})


@pytest.fixture
def provider(png_b64: str) -> FakeProvider:
    return FakeProvider(payload=png_b64)


@pytest.fixture
def artifact_store(supabase_client: FakeSupabaseClient) -> ArtifactStore:
    return ArtifactStore(supabase_client)


@pytest.fixture
def record_store(supabase_client: FakeSupabaseClient) -> SupabaseRecordStore:
    return SupabaseRecordStore(supabase_client)


@pytest.fixture
def app(test_settings, provider, artifact_store, record_store, supabase_client):
    return create_app(
        settings=test_settings,
        provider=provider,
        store=artifact_store,
        records=record_store,
        verifier=SupabaseAuthVerifier(supabase_client),
    )


@pytest.fixture
def test_client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer token-u1"}
