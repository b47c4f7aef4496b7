"""
Chat-completions client for the AI providers (OpenAI, Perplexity).

Both providers speak the OpenAI chat-completions protocol with bearer auth,
so one client covers them; only base URL, key and model differ.
"""
import logging
from dataclasses import dataclass

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """The provider could not be reached or returned no usable completion."""


class AINotConfiguredError(AIServiceError):
    """No API key configured for the requested provider."""


class TemplateNotFoundError(Exception):
    """A required system template is missing for the tenant."""


@dataclass(frozen=True)
class ProviderConfig:
    base_url: str
    api_key: str
    model: str


def provider_config(provider: str) -> ProviderConfig:
    if provider == "openai":
        return ProviderConfig(settings.OPENAI_BASE_URL, settings.OPENAI_API_KEY, settings.OPENAI_MODEL)
    if provider == "perplexity":
        return ProviderConfig(
            settings.PERPLEXITY_BASE_URL, settings.PERPLEXITY_API_KEY, settings.PERPLEXITY_MODEL
        )
    raise ValueError(f"Unknown AI provider: {provider}")


class AIClient:

    def __init__(self, provider: str = "openai", transport: httpx.AsyncBaseTransport | None = None):
        self.provider = provider
        self.config = provider_config(provider)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1500,
    ) -> str:
        if not self.is_configured:
            raise AINotConfiguredError(f"{self.provider} API key is not configured")

        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        url = f"{self.config.base_url.rstrip('/')}/chat/completions"

        try:
            async with httpx.AsyncClient(
                timeout=settings.AI_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                r = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("%s request failed: %s", self.provider, e)
            raise AIServiceError(f"{self.provider} request failed: {e}") from e

        if r.status_code >= 300:
            logger.error("%s returned %s: %s", self.provider, r.status_code, r.text[:500])
            raise AIServiceError(f"{self.provider} API error: {r.status_code}")

        try:
            content = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIServiceError(f"Unexpected {self.provider} response shape") from e

        content = (content or "").strip()
        if not content:
            raise AIServiceError(f"No completion received from {self.provider}")
        return content
