"""LLM API client utilities."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    RateLimitError,
    AuthenticationError,
    BadRequestError,
    APIStatusError,
)

from .errors import APIErrorType, TransportError

logger = logging.getLogger(__name__)


# 按错误信息分类时使用的关键字（不区分大小写）
_AUTH_HINTS = ("api key not valid", "invalid api key", "incorrect api key", "401")
_RATE_LIMIT_HINTS = ("429", "quota", "rate limit")
_SAFETY_HINTS = ("safety",)


def classify_error(error: Exception) -> APIErrorType:
    """
    分类 API 错误。

    SDK exception types are checked first; anything else is classified by
    case-insensitive substrings of its message.

    Returns:
        错误类型
    """
    if isinstance(error, TransportError):
        return error.category

    if isinstance(error, RateLimitError):
        return APIErrorType.RATE_LIMIT
    elif isinstance(error, AuthenticationError):
        return APIErrorType.AUTH
    elif isinstance(error, APIConnectionError):
        return APIErrorType.CONNECTION
    elif isinstance(error, BadRequestError):
        return _classify_message(str(error), default=APIErrorType.BAD_REQUEST)
    elif isinstance(error, APIStatusError) and error.status_code >= 500:
        return APIErrorType.SERVER
    return _classify_message(str(error))


def _classify_message(message: str, default: APIErrorType = APIErrorType.UNKNOWN) -> APIErrorType:
    lower = message.lower()
    if any(hint in lower for hint in _AUTH_HINTS):
        return APIErrorType.AUTH
    if any(hint in lower for hint in _RATE_LIMIT_HINTS):
        return APIErrorType.RATE_LIMIT
    if any(hint in lower for hint in _SAFETY_HINTS):
        return APIErrorType.SAFETY
    return default


def describe_error(error_type: APIErrorType, error: Exception) -> str:
    """Map an error category to the message shown to the user."""
    if error_type is APIErrorType.AUTH:
        return "Invalid API Key: Please ensure your API key is correctly configured."
    if error_type is APIErrorType.RATE_LIMIT:
        return (
            "Rate Limit Exceeded: You have exceeded your API request quota. "
            "Please wait and try again later."
        )
    if error_type is APIErrorType.SAFETY:
        return (
            "Content Blocked: The request was blocked due to safety settings. "
            "Please check the content of your VTT file."
        )
    return f"API Error: {error}"


def to_transport_error(error: Exception) -> TransportError:
    """Wrap any failure of the remote call in a classified TransportError."""
    if isinstance(error, TransportError):
        return error
    error_type = classify_error(error)
    return TransportError(describe_error(error_type, error), error_type)


async def stream_chat(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
) -> AsyncIterator[str]:
    """
    Open a streamed chat completion.

    Args:
        client: AsyncOpenAI client instance
        model: Model name to use
        messages: Full conversation so far
        temperature: Sampling temperature

    Returns:
        Single-pass iterator over text deltas, in order

    Raises:
        TransportError: if the request cannot be started
    """
    try:
        stream = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            stream=True,
        )
    except Exception as e:
        error = to_transport_error(e)
        logger.debug(f"Chat request failed ({error.category.value}): {e}")
        raise error from e

    return _iter_deltas(stream)


async def _iter_deltas(stream) -> AsyncIterator[str]:
    try:
        async for event in stream:
            if not event.choices:
                continue
            content = event.choices[0].delta.content
            if content:
                yield content
    except Exception as e:
        error = to_transport_error(e)
        logger.debug(f"Chat stream failed ({error.category.value}): {e}")
        raise error from e


def create_client(
    api_key: str,
    base_url: str = "https://api.deepseek.com",
    timeout: float = 300.0
) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    Retries are disabled in the SDK; the chunk retry engine owns them.

    Args:
        api_key: API key for authentication
        base_url: API base URL
        timeout: Default timeout for requests

    Returns:
        Configured AsyncOpenAI client
    """
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        max_retries=0,
    )
