"""
Backlog generator client - the external LLM-backed service that turns a
prompt into raw suggestion text.

Two providers are supported:

* ``http``: a generation service answering
  ``POST {base_url}/epics/generate-from-prompt/`` with an envelope
  ``{"success": bool, "data": str, "message": str}``
* ``openai``: any OpenAI-compatible chat completion endpoint
"""
from typing import Any, Dict, Optional

import httpx
import openai
from fastapi import Request
from openai import AsyncOpenAI

from ..config import Settings
from ..core.exceptions import GeneratorError, GeneratorNotConfiguredError
from ..utils.logging import get_logger

logger = get_logger(__name__)

GENERATE_PATH = "/epics/generate-from-prompt/"

SYSTEM_PROMPT = (
    "You are an assistant for agile teams that writes backlog items. "
    "Always answer with a single JSON object and nothing else."
)


class BacklogGenerator:
    """Unified interface for the configured generator provider"""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.provider = settings.generator_provider.lower()
        self.base_url = settings.generator_base_url.rstrip("/") if settings.generator_base_url else None
        self.timeout = settings.generator_timeout
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._openai: Optional[AsyncOpenAI] = None
        logger.info("Initialized backlog generator provider: %s", self.provider)

    @property
    def is_configured(self) -> bool:
        if self.provider == "openai":
            return True
        return self.base_url is not None

    async def generate(self, prompt: str, data: Optional[Dict[str, Any]] = None) -> str:
        """
        Send a prompt (plus structured context) to the generator.

        Returns:
            Raw text produced by the model, expected to contain JSON.

        Raises:
            GeneratorNotConfiguredError: no base URL for the http provider
            GeneratorError: transport failure, timeout or failure envelope
        """
        if self.provider == "openai":
            return await self._openai_completion(prompt)
        return await self._http_generate(prompt, data or {})

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json"
                }
            )
        return self._client

    async def _http_generate(self, prompt: str, data: Dict[str, Any]) -> str:
        if not self.base_url:
            raise GeneratorNotConfiguredError("GENERATOR_BASE_URL is not set")

        client = self._get_client()
        try:
            response = await client.post(GENERATE_PATH, json={"prompt": prompt, "data": data})
        except httpx.TimeoutException as e:
            logger.error("Generator request timed out after %ss", self.timeout)
            raise GeneratorError(f"Generator request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error("Generator request failed: %s", e)
            raise GeneratorError(f"Generator request failed: {e}") from e

        body = self._safe_json(response)

        if not response.is_success:
            upstream_message = body.get("message") if isinstance(body, dict) else None
            raise GeneratorError(
                f"Generator responded with {response.status_code}: "
                f"{upstream_message or response.text[:200]}",
                upstream_status=response.status_code,
                response_data=body
            )

        if not isinstance(body, dict):
            raise GeneratorError(
                "Generator returned a body that is not a JSON object",
                upstream_status=response.status_code
            )

        if not body.get("success"):
            raise GeneratorError(
                body.get("message") or "Generator reported a failure",
                upstream_status=response.status_code,
                response_data=body
            )

        text = body.get("data")
        if not isinstance(text, str):
            raise GeneratorError(
                "Generator data is not a text payload",
                upstream_status=response.status_code,
                response_data=body
            )

        return text

    async def _openai_completion(self, prompt: str) -> str:
        """Call an OpenAI-compatible API (OpenAI, Groq, Ollama's /v1, etc.)"""
        if self._openai is None:
            self._openai = AsyncOpenAI(
                api_key=self._settings.openai_api_key,
                base_url=self._settings.openai_api_base,
                timeout=self.timeout,
                max_retries=0
            )

        try:
            response = await self._openai.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=self._settings.max_tokens,
                temperature=self._settings.openai_temperature
            )
        except openai.APITimeoutError as e:
            raise GeneratorError(f"LLM request timed out after {self.timeout}s") from e
        except openai.APIStatusError as e:
            raise GeneratorError(f"LLM API failed: {e.message}", upstream_status=e.status_code) from e
        except openai.OpenAIError as e:
            logger.error("LLM API error: %s", e)
            raise GeneratorError(f"LLM API failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GeneratorError("LLM returned an empty completion")
        return content

    def _safe_json(self, response: httpx.Response) -> Optional[Any]:
        """Safely parse JSON response."""
        try:
            return response.json()
        except ValueError:
            return None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._openai is not None:
            await self._openai.close()
            self._openai = None


def get_generator(request: Request) -> BacklogGenerator:
    return request.app.state.generator
