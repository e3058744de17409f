"""
CityFlow - OpenRouter LLM client
Structured JSON chat completions validated against Pydantic models.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cityflow.core.config import settings
from cityflow.core.exceptions import AppError, ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_OBJECT_FORMAT = {"type": "json_object"}

HTTP_ERROR_MESSAGES: dict[int, str] = {
    400: "Invalid request parameters. Please check your input.",
    401: "Invalid API key. Please check your OpenRouter configuration.",
    429: "Rate limit exceeded. Please try again later.",
}
SERVICE_UNAVAILABLE_MESSAGE = "OpenRouter service is temporarily unavailable. Please try again later."
CONNECTION_ERROR_MESSAGE = "Failed to connect to OpenRouter API. Please check your network connection."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while generating the response."


def strip_code_fences(content: str) -> str:
    """Remove a markdown code fence wrapped around a JSON payload."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
        content = content.strip()
    return content


def map_status_error(status_code: int, reason: str) -> str:
    """Translate an HTTP status from OpenRouter into a user-facing message."""
    if status_code in HTTP_ERROR_MESSAGES:
        return HTTP_ERROR_MESSAGES[status_code]
    if status_code >= 500:
        return SERVICE_UNAVAILABLE_MESSAGE
    return f"OpenRouter API error: {reason}"


class OpenRouterClient:
    """Chat completions through OpenRouter's OpenAI-compatible API.

    Example:
        client = OpenRouterClient()
        result = await client.get_structured_response(
            system_prompt="...", user_prompt="...", response_model=MySchema,
        )
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        if not self.api_key:
            raise ValueError("OpenRouter API key is required.")
        self.base_url = base_url or settings.OPENROUTER_BASE_URL
        self.default_model = default_model or settings.OPENROUTER_MODEL

    def get_llm(self, model: str | None = None, params: dict[str, Any] | None = None) -> ChatOpenAI:
        """Get a ChatOpenAI instance pointed at OpenRouter."""
        params = dict(params or {})
        return ChatOpenAI(
            model=model or self.default_model,
            api_key=self.api_key,
            base_url=self.base_url,
            temperature=params.pop("temperature", settings.OPENROUTER_TEMPERATURE),
            max_tokens=settings.OPENROUTER_MAX_TOKENS,
            timeout=settings.OPENROUTER_TIMEOUT,
            max_retries=0,
            default_headers={"X-Title": settings.APP_NAME},
            model_kwargs=params,
        )

    async def get_structured_response(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: Any,
        model: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a system and user prompt and validate the JSON answer.

        Args:
            system_prompt: Instructions describing the expected JSON
            user_prompt: The request itself
            response_model: Pydantic model or type annotation to validate against
            model: Optional model override
            params: Extra completion parameters (temperature, top_p, ...)

        Returns:
            The validated response

        Raises:
            ValidationError: The answer is empty, not JSON or has the wrong shape
            ExternalServiceError: OpenRouter could not be reached or failed
        """
        model_name = model or self.default_model
        logger.info(f"Requesting structured response from OpenRouter (model: {model_name})")

        try:
            content = await self._complete(system_prompt, user_prompt, model_name, params)
            return self._parse_response(content, response_model)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during OpenRouter request: {e}")
            raise ExternalServiceError(UNEXPECTED_ERROR_MESSAGE, e) from e

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        params: dict[str, Any] | None,
    ) -> str:
        llm = self.get_llm(model, params).bind(response_format=JSON_OBJECT_FORMAT)
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]

        try:
            response = await llm.ainvoke(messages)
        except openai.APIStatusError as e:
            logger.error(f"OpenRouter API error: HTTP {e.status_code}: {e.message}")
            raise ExternalServiceError(map_status_error(e.status_code, e.message), e) from e
        except openai.APIConnectionError as e:
            logger.error(f"Network error while calling OpenRouter: {e}")
            raise ExternalServiceError(CONNECTION_ERROR_MESSAGE, e) from e

        content = response.content if isinstance(response.content, str) else ""
        if not content.strip():
            logger.error("OpenRouter response contained no message content")
            raise ValidationError("Invalid response structure from OpenRouter API.")
        return content

    def _parse_response(self, content: str, response_model: Any) -> Any:
        try:
            data = json.loads(strip_code_fences(content))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse OpenRouter response as JSON: {e}")
            raise ValidationError(
                "Failed to parse the response from OpenRouter API.",
                details=str(e),
            ) from e

        try:
            return TypeAdapter(response_model).validate_python(data)
        except PydanticValidationError as e:
            logger.error(f"OpenRouter response failed schema validation: {e.error_count()} error(s)")
            raise ValidationError(
                "The response from OpenRouter does not match the expected format.",
                details=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e
