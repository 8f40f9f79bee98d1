"""Tests for the completion gateway wrapper and chat file storage."""
import asyncio
import time

import pytest

from careerai.config import settings
from careerai.exceptions import (
    ConfigurationError, GatewayError, GatewayTimeoutError, NotFoundError, UploadRejectedError,
)
from careerai.services import llm_gateway
from careerai.services.file_storage import FileStorageService, to_storage_relative
from careerai.services.llm_gateway import BaseCompletionGateway, create_gateway


class ScriptedGateway(BaseCompletionGateway):
    """Runs the real complete() path over a scripted sync call."""

    def __init__(self, outcomes, **kwargs):
        kwargs.setdefault("timeout", 2.0)
        kwargs.setdefault("max_retries", 2)
        super().__init__("key", "model", **kwargs)
        self.outcomes = list(outcomes)
        self.prompts = []
        self.files = []

    def _sync_complete(self, prompt, files):
        self.prompts.append(prompt)
        self.files.append(files)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome


@pytest.fixture
def no_backoff(monkeypatch):
    async def instant(_delay):
        return None
    monkeypatch.setattr(llm_gateway.asyncio, "sleep", instant)


@pytest.mark.asyncio
async def test_complete_returns_reply():
    gateway = ScriptedGateway(["hello there"])
    assert await gateway.complete("hi") == "hello there"
    assert gateway.prompts == ["hi"]


@pytest.mark.asyncio
async def test_transient_errors_are_retried(no_backoff):
    gateway = ScriptedGateway([ConnectionError("reset"), "recovered"])
    assert await gateway.complete("hi") == "recovered"
    assert len(gateway.prompts) == 2


@pytest.mark.asyncio
async def test_retries_exhausted_become_gateway_error(no_backoff):
    gateway = ScriptedGateway([ConnectionError("a"), ConnectionError("b")], max_retries=1)
    with pytest.raises(GatewayError):
        await gateway.complete("hi")


@pytest.mark.asyncio
async def test_non_transient_error_is_not_retried():
    gateway = ScriptedGateway([ValueError("bad request"), "never"])
    with pytest.raises(GatewayError) as exc_info:
        await gateway.complete("hi")
    assert not isinstance(exc_info.value, GatewayTimeoutError)
    assert len(gateway.prompts) == 1


@pytest.mark.asyncio
async def test_empty_reply_is_an_error():
    with pytest.raises(GatewayError):
        await ScriptedGateway([""]).complete("hi")


@pytest.mark.asyncio
async def test_slow_provider_times_out():
    def slow():
        time.sleep(0.5)
        return "too late"

    gateway = ScriptedGateway([slow], timeout=0.05)
    with pytest.raises(GatewayTimeoutError):
        await gateway.complete("hi")


@pytest.mark.asyncio
async def test_only_inline_capable_readable_files_are_sent(tmp_path):
    storage = FileStorageService(base_path=str(tmp_path), public_base_url="http://files")
    (tmp_path / "chat-files").mkdir()
    (tmp_path / "chat-files" / "a.png").write_bytes(b"png-bytes")
    (tmp_path / "chat-files" / "b.pdf").write_bytes(b"pdf-bytes")

    gateway = ScriptedGateway(["ok"], storage=storage)
    await gateway.complete("hi", [
        {"name": "photo.png", "path": "chat-files/a.png"},
        {"name": "cv.pdf", "path": "chat-files/b.pdf"},
        {"name": "gone.png", "path": "chat-files/missing.png"},
        {"name": "evil.png", "path": "../outside.png"},
    ])

    assert gateway.files[0] == [{"name": "photo.png", "mime_type": "image/png", "data": b"png-bytes"}]


def test_create_gateway_requires_credentials(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    with pytest.raises(ConfigurationError):
        create_gateway("openai")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    with pytest.raises(ConfigurationError):
        create_gateway("gemini")
    with pytest.raises(ConfigurationError):
        create_gateway("carrier-pigeon")


@pytest.mark.parametrize("path", [
    "http://localhost:8721/uploads/chat-files/x.pdf",
    "/uploads/chat-files/x.pdf",
    "uploads/chat-files/x.pdf",
    "chat-files/x.pdf",
])
def test_storage_relative_paths(path):
    assert to_storage_relative(path, "http://localhost:8721") == "chat-files/x.pdf"


@pytest.mark.asyncio
async def test_save_upload_writes_file_and_returns_metadata(tmp_path):
    storage = FileStorageService(base_path=str(tmp_path), public_base_url="http://files")

    meta = await storage.save_upload(b"%PDF-1.4", "resume.pdf", "application/pdf")

    assert meta["original_name"] == "resume.pdf"
    assert meta["stored_name"].endswith(".pdf") and meta["stored_name"] != "resume.pdf"
    assert meta["storage_path"] == f"http://files/uploads/chat-files/{meta['stored_name']}"
    assert meta["kind"] == ".pdf"
    assert meta["size_bytes"] == 8
    assert storage.chat_file_path(meta["stored_name"]).read_bytes() == b"%PDF-1.4"
    assert await storage.read(to_storage_relative(meta["storage_path"], "http://files")) == b"%PDF-1.4"


@pytest.mark.asyncio
async def test_save_upload_rejects_type_and_size(tmp_path, monkeypatch):
    storage = FileStorageService(base_path=str(tmp_path))

    with pytest.raises(UploadRejectedError) as exc_info:
        await storage.save_upload(b"MZ", "run.exe", "application/x-msdownload")
    assert not exc_info.value.too_large

    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    with pytest.raises(UploadRejectedError) as exc_info:
        await storage.save_upload(b"hello", "a.txt", "text/plain")
    assert exc_info.value.too_large


def test_missing_and_escaping_paths_are_not_found(tmp_path):
    storage = FileStorageService(base_path=str(tmp_path))
    with pytest.raises(NotFoundError):
        storage.chat_file_path("nope.pdf")
    with pytest.raises(NotFoundError):
        storage.chat_file_path("../../etc/passwd")
