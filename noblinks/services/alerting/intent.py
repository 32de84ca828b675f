"""
Intent extraction for the alert assistant.

Turns a free-text alert request into a structured ``IntentResult`` by
asking an OpenAI-compatible chat completion endpoint (OpenAI or
OpenRouter) for JSON that conforms to a fixed schema. The model is only
ever offered the capability keys in the supplied catalog; the result is
still re-validated by the matcher before anything is trusted.

References:
- Structured outputs: https://platform.openai.com/docs/guides/structured-outputs
- OpenRouter API: https://openrouter.ai/docs/api-reference/overview
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from noblinks.core.config import AISettings, settings
from noblinks.models.capability import MonitoringCapability
from noblinks.schemas.alerting import IntentResult
from noblinks.services.alerting.errors import (
    AuthError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
    UnknownProviderError,
)

logger = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = (500, 502, 503, 504)


# =============================================================================
# Prompt and output schema
# =============================================================================

def _nullable(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"anyOf": [schema, {"type": "null"}]}


# Strict mode requires every property to be listed as required;
# optional values are expressed as nullable instead.
INTENT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": [
        "matched", "capabilityKey", "params", "severity",
        "alertName", "description", "noMatchReason",
    ],
    "properties": {
        "matched": {
            "type": "boolean",
            "description": "Whether a matching capability was found",
        },
        "capabilityKey": _nullable({
            "type": "string",
            "description": "The matching capability key from the list",
        }),
        "params": _nullable({
            "type": "object",
            "additionalProperties": False,
            "required": ["machine", "threshold", "window"],
            "properties": {
                "machine": {"type": "string", "description": "Target machine name/instance"},
                "threshold": {"type": "number", "description": "Alert threshold value"},
                "window": {"type": "string", "description": "Time window duration like 5m, 1h, 30s"},
            },
        }),
        "severity": _nullable({
            "type": "string",
            "enum": ["critical", "warning", "info"],
            "description": "Alert severity level",
        }),
        "alertName": _nullable({
            "type": "string",
            "description": "Human-readable name for the alert",
        }),
        "description": _nullable({
            "type": "string",
            "description": "Brief description of what this alert monitors",
        }),
        "noMatchReason": _nullable({
            "type": "string",
            "description": "Explanation of why no capability matched, if matched is false",
        }),
    },
}


def format_capability(capability: MonitoringCapability) -> str:
    """Render one catalog entry for the system prompt."""
    return (
        f"- Key: {capability.capability_key}\n"
        f"  Name: {capability.name}\n"
        f"  Description: {capability.description}\n"
        f"  Category: {capability.category}\n"
        f"  Parameters: {json.dumps(capability.parameters)}\n"
        f"  Default Threshold: {capability.default_threshold:g}\n"
        f"  Default Window: {capability.default_window}\n"
        f"  Suggested Severity: {capability.suggested_severity}"
    )


def build_system_prompt(catalog: Sequence[MonitoringCapability]) -> str:
    """Build the system instruction listing the closed set of capabilities."""
    capability_list = "\n".join(format_capability(c) for c in catalog)

    return f"""You are an alert configuration assistant for a monitoring platform.

Available monitoring capabilities:
{capability_list}

RULES:
1. You MUST select a capabilityKey from the list above. Never invent a new one.
2. Extract parameters from the user's message.
3. If threshold is not specified, use the capability's Default Threshold.
4. If window/duration is not specified, use the capability's Default Window.
5. If severity is not specified, use the capability's Suggested Severity.
6. Generate a clear, descriptive alertName.
7. If the user's request doesn't match ANY capability, set matched to false and explain why in noMatchReason.
8. The machine parameter is the target server/instance name mentioned by the user.
9. Window must be a duration string like 5m, 1h, 30s, 1d."""


# =============================================================================
# Extractor interface
# =============================================================================

class IntentExtractor(ABC):
    """Turns a prompt into a structured, still untrusted, match result."""

    @abstractmethod
    async def extract(
        self,
        prompt: str,
        catalog: Sequence[MonitoringCapability],
    ) -> IntentResult:
        """
        Extract alert intent from a prompt.

        Raises:
            ProviderError subclasses when the underlying model call fails.
        """

    async def close(self) -> None:
        """Release any resources held by the extractor."""


# =============================================================================
# OpenAI-compatible extractor
# =============================================================================

@dataclass
class ProviderConfig:
    """Resolved provider endpoint and credentials."""
    name: str
    api_key: str
    model: str
    base_url: str


def resolve_provider(ai: AISettings) -> ProviderConfig:
    """
    Pick the active provider: OpenAI first, then OpenRouter.

    Raises:
        ConfigurationError: if no provider key is configured.
    """
    if ai.provider == "openai":
        return ProviderConfig("openai", ai.openai_api_key, ai.openai_model, ai.openai_base_url)
    if ai.provider == "openrouter":
        return ProviderConfig("openrouter", ai.openrouter_api_key, ai.openrouter_model, ai.openrouter_base_url)
    raise ConfigurationError("AI provider not configured")


class OpenAIIntentExtractor(IntentExtractor):
    """Intent extractor backed by an OpenAI-compatible chat completion API."""

    def __init__(
        self,
        provider: Optional[ProviderConfig] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        temperature: float = 0.0,
        http_client: Optional[httpx.AsyncClient] = None,
        ai: Optional[AISettings] = None,
    ):
        # Resolved on first use so that a missing key surfaces from extract()
        self._provider = provider
        self._ai = ai
        self.timeout = timeout
        self.max_retries = max_retries
        self.temperature = temperature
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def provider(self) -> ProviderConfig:
        """Active provider; raises ConfigurationError when none is configured."""
        if self._provider is None:
            self._provider = resolve_provider(self._ai or settings.ai)
        return self._provider

    @classmethod
    def from_settings(cls, ai: Optional[AISettings] = None) -> "OpenAIIntentExtractor":
        ai = ai or settings.ai
        return cls(
            ai=ai,
            timeout=ai.timeout_seconds,
            max_retries=ai.max_retries,
            temperature=ai.temperature,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.provider.base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {self.provider.api_key}"},
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def extract(
        self,
        prompt: str,
        catalog: Sequence[MonitoringCapability],
    ) -> IntentResult:
        body = {
            "model": self.provider.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": build_system_prompt(catalog)},
                {"role": "user", "content": prompt},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "alert_intent",
                    "strict": True,
                    "schema": INTENT_RESPONSE_SCHEMA,
                },
            },
        }

        data = await self._request_with_retry(body)
        result = self._parse_response(data)

        logger.info(
            "Intent extracted",
            provider=self.provider.name,
            model=self.provider.model,
            matched=result.matched,
            capability_key=result.capability_key,
        )
        return result

    async def _request_with_retry(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST to /chat/completions, retrying 5xx responses and timeouts."""
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post("/chat/completions", json=body)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise self._map_status_error(e) from e

            except httpx.TimeoutException as e:
                if attempt < self.max_retries:
                    await asyncio.sleep(1)
                    continue
                raise NetworkError(
                    "The AI provider did not respond in time. Please try again.",
                    detail=repr(e),
                ) from e

            except httpx.TransportError as e:
                raise NetworkError(
                    "Could not reach the AI provider. Please try again.",
                    detail=repr(e),
                ) from e

            except json.JSONDecodeError as e:
                raise UnknownProviderError(
                    "AI processing failed. Please try again.",
                    detail=f"Provider returned non-JSON body: {e}",
                ) from e

        # Loop always returns or raises
        raise UnknownProviderError("AI processing failed. Please try again.")

    def _map_status_error(self, error: httpx.HTTPStatusError) -> Exception:
        status_code = error.response.status_code
        detail = f"{self.provider.name} returned {status_code}: {error.response.text[:500]}"

        logger.warning(
            "AI provider request failed",
            provider=self.provider.name,
            status_code=status_code,
        )

        if status_code in (401, 403):
            return AuthError("AI provider rejected the configured credentials.", detail=detail)
        if status_code == 429:
            return RateLimitError(
                "The AI provider is rate limiting requests. Please wait a moment and try again.",
                detail=detail,
            )
        return UnknownProviderError("AI processing failed. Please try again.", detail=detail)

    def _parse_response(self, data: Dict[str, Any]) -> IntentResult:
        """Pull the structured JSON out of a chat completion response."""
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise UnknownProviderError(
                "AI processing failed. Please try again.",
                detail=f"Unexpected completion shape: {e!r}",
            ) from e

        if message.get("refusal"):
            raise UnknownProviderError(
                "AI processing failed. Please try again.",
                detail=f"Model refused: {message['refusal']}",
            )

        content = message.get("content")
        try:
            return IntentResult.model_validate_json(content or "")
        except PydanticValidationError as e:
            raise UnknownProviderError(
                "AI processing failed. Please try again.",
                detail=f"Structured output did not match schema: {e}",
            ) from e
