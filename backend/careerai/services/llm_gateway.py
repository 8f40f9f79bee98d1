"""Completion gateway - async wrapper around the OpenAI and Gemini SDKs.

Both SDKs are sync, so calls run in asyncio.to_thread with exponential
backoff on transient errors, and the whole call (retries included) is bounded
by asyncio.wait_for. Every failure surfaces as GatewayError.
"""
import asyncio
import base64
import logging
import mimetypes
import random
from abc import ABC, abstractmethod
from typing import Optional, Tuple, Type

from careerai.config import settings
from careerai.exceptions import ConfigurationError, GatewayError, GatewayTimeoutError, NotFoundError
from careerai.services.file_storage import FileStorageService, file_storage

logger = logging.getLogger(__name__)

# Only the most recent files are sent inline; the rest are referenced by name in the prompt.
MAX_INLINE_FILES = 5


class BaseCompletionGateway(ABC):
    """Abstract base class for completion providers."""

    # Override in subclasses with provider-specific retryable exception types
    RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError)
    # MIME types the provider accepts as inline file parts
    INLINE_MIME_PREFIXES: Tuple[str, ...] = ("image/",)

    def __init__(
        self, api_key: str, model_name: str, temperature: float = 0.7,
        timeout: float = 60.0, max_retries: int = 2,
        storage: Optional[FileStorageService] = None,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.storage = storage or file_storage

    async def _with_retry(self, sync_fn, *args):
        """Run a sync SDK call in a thread, retrying transient errors with backoff."""
        for attempt in range(self.max_retries + 1):
            try:
                return await asyncio.to_thread(sync_fn, *args)
            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt == self.max_retries:
                    raise
                delay = (2 ** (attempt + 1)) + random.uniform(0, 1)
                logger.warning(
                    "Completion call failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, self.max_retries + 1, delay, e,
                )
                await asyncio.sleep(delay)

    async def _load_inline_files(self, attachments: list[dict]) -> list[dict]:
        """Read bytes for attachments the provider can take inline."""
        files = []
        for att in attachments:
            if len(files) >= MAX_INLINE_FILES:
                break
            mime_type, _ = mimetypes.guess_type(att["name"])
            if not mime_type or not mime_type.startswith(self.INLINE_MIME_PREFIXES):
                continue
            try:
                data = await self.storage.read(att["path"])
            except (OSError, NotFoundError) as e:
                # The file is still listed by name in the prompt text.
                logger.warning("Skipping unreadable attachment %s: %s", att["path"], e)
                continue
            files.append({"name": att["name"], "mime_type": mime_type, "data": data})
        return files

    async def complete(self, prompt: str, attachments: Optional[list[dict]] = None) -> str:
        """Send the prompt (plus inline-capable files) and return the reply text.

        ``attachments`` are ``{"name", "path"}`` dicts with storage-relative paths.
        """
        files = await self._load_inline_files(attachments or [])
        try:
            text = await asyncio.wait_for(
                self._with_retry(self._sync_complete, prompt, files),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise GatewayTimeoutError(f"Completion call timed out after {self.timeout}s")
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"{type(self).__name__} call failed: {e}") from e
        if not text:
            raise GatewayError(f"{type(self).__name__} returned an empty completion")
        return text

    @abstractmethod
    def _sync_complete(self, prompt: str, files: list[dict]) -> str:
        pass


class OpenAIGateway(BaseCompletionGateway):
    """OpenAI chat completions. Images go inline as base64 data URLs."""

    def __init__(self, api_key: str, model_name: str, **kwargs):
        super().__init__(api_key, model_name, **kwargs)
        from openai import OpenAI
        self.client = OpenAI(api_key=api_key)
        from openai import RateLimitError, APIConnectionError
        self.RETRYABLE_EXCEPTIONS = (
            RateLimitError, APIConnectionError, ConnectionError, TimeoutError,
        )

    def _sync_complete(self, prompt, files):
        if files:
            content = [{"type": "text", "text": prompt}]
            for f in files:
                b64_data = base64.b64encode(f["data"]).decode("utf-8")
                content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{f['mime_type']};base64,{b64_data}"},
                })
        else:
            content = prompt

        response = self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": "user", "content": content}],
            temperature=self.temperature,
        )
        return response.choices[0].message.content


class GeminiGateway(BaseCompletionGateway):
    """Gemini via google-genai. Images, PDFs and plain text go inline as bytes."""

    INLINE_MIME_PREFIXES = ("image/", "application/pdf", "text/")

    def __init__(self, api_key: str, model_name: str, **kwargs):
        super().__init__(api_key, model_name, **kwargs)
        from google import genai
        self.client = genai.Client(api_key=api_key)
        from google.genai import errors
        self.RETRYABLE_EXCEPTIONS = (errors.ServerError, ConnectionError, TimeoutError)

    def _sync_complete(self, prompt, files):
        from google.genai import types

        contents = [types.Part.from_bytes(data=f["data"], mime_type=f["mime_type"]) for f in files]
        contents.append(prompt)
        config = types.GenerateContentConfig(temperature=self.temperature)
        response = self.client.models.generate_content(
            model=self.model_name, contents=contents, config=config,
        )
        return response.text


def create_gateway(provider: Optional[str] = None) -> BaseCompletionGateway:
    """Build the configured gateway. Missing credentials are a configuration error."""
    provider = provider or settings.DEFAULT_LLM_PROVIDER
    common = {
        "temperature": settings.LLM_TEMPERATURE,
        "timeout": settings.LLM_TIMEOUT_SECONDS,
        "max_retries": settings.LLM_MAX_RETRIES,
    }
    if provider == "openai":
        if not settings.OPENAI_API_KEY or not settings.OPENAI_MODEL:
            raise ConfigurationError("OPENAI_API_KEY and OPENAI_MODEL must be set")
        return OpenAIGateway(settings.OPENAI_API_KEY, settings.OPENAI_MODEL, **common)
    elif provider == "gemini":
        if not settings.GEMINI_API_KEY or not settings.GEMINI_MODEL:
            raise ConfigurationError("GEMINI_API_KEY and GEMINI_MODEL must be set")
        return GeminiGateway(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, **common)
    raise ConfigurationError(f"Unknown LLM provider: {provider}")
