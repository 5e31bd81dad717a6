"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
import io

import httpx
import pytest
from starlette.datastructures import UploadFile

from securedata.core.attachments import AttachmentManager
from securedata.core.logos import LogoResolver
from securedata.core.service import CredentialService
from securedata.core.types import AccountDraft, Principal, Role
from securedata.storage.db import ConnectionSupervisor
from securedata.storage.repos.accounts_repo import AccountsRepo


@pytest.fixture
def db_path(tmp_path):
    """Path for a temporary SQLite database."""
    return tmp_path / "securedata.db"


@pytest.fixture
def supervisor(db_path):
    """A started supervisor on a temp database, shut down after the test."""
    supervisor = ConnectionSupervisor(db_path=db_path, reconnect_delay=0.05)
    assert supervisor.start() is True
    yield supervisor
    supervisor.shutdown()


@pytest.fixture
def repo(supervisor):
    """Accounts repository backed by the temp database."""
    return AccountsRepo(supervisor)


@pytest.fixture
def upload_dir(tmp_path):
    """Confined upload root."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def attachments(upload_dir):
    """Attachment manager with a small size cap."""
    return AttachmentManager(root=upload_dir, max_bytes=1024)


@pytest.fixture
def alice():
    return Principal(id="user-alice")


@pytest.fixture
def bob():
    return Principal(id="user-bob")


@pytest.fixture
def admin():
    return Principal(id="user-admin", role=Role.ADMIN)


@pytest.fixture
def make_draft():
    """Factory for account drafts."""

    def _make_draft(**overrides) -> AccountDraft:
        values = {
            "owner": "user-alice",
            "website": "github.com",
            "name": "GH",
            "username": "alice",
            "email": "a@x.com",
            "password": "p",
            "logo": "https://github.githubassets.com/favicons/favicon.svg",
        }
        values.update(overrides)
        return AccountDraft(**values)

    return _make_draft


@pytest.fixture
def account_fields():
    """Valid create/update form fields."""
    return {
        "website": "github.com",
        "name": "GH",
        "username": "alice",
        "email": "a@x.com",
        "password": "p",
    }


@pytest.fixture
def make_upload():
    """Factory for in-memory uploads shaped like FastAPI's UploadFile."""

    def _make_upload(data: bytes = b"%PDF-1.4 test", filename: str = "doc.pdf"):
        return UploadFile(file=io.BytesIO(data), filename=filename)

    return _make_upload


class ProviderStub:
    """Records favicon provider requests and answers with fixed statuses."""

    def __init__(self, icon_horse: int = 404, google: int = 404, delay: float = 0):
        self.statuses = {"icon.horse": icon_horse, "www.google.com": google}
        self.delay = delay
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        return httpx.Response(self.statuses.get(request.url.host, 404))


@pytest.fixture
def make_providers():
    """Factory for fake favicon providers with chosen statuses."""
    return ProviderStub


@pytest.fixture
def providers():
    """Fake favicon providers; every probe fails."""
    return ProviderStub()


@pytest.fixture
def make_resolver(providers):
    """Factory for logo resolvers talking to the fake providers."""

    def _make_resolver(stub: ProviderStub | None = None, timeout: float = 1.0):
        transport = httpx.MockTransport(stub or providers)
        return LogoResolver(client=httpx.AsyncClient(transport=transport), timeout=timeout)

    return _make_resolver


@pytest.fixture
def service(repo, make_resolver, attachments):
    """Credential service wired to temp storage and fake providers."""
    return CredentialService(store=repo, logos=make_resolver(), attachments=attachments)
