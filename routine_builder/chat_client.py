from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import ServiceError, TransportError

logger = logging.getLogger("routine_builder.chat")

FALLBACK_REPLY = "No response."


class ChatClient:
    """Thin async wrapper around the remote chat endpoint."""

    def __init__(
        self,
        endpoint_url: str,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Purpose: Configure the endpoint and the shared HTTP client.
        Inputs/Outputs: Inputs are the endpoint URL, an optional timeout in seconds,
            and an optional preconfigured AsyncClient; no return value.
        Side Effects / State: Creates an httpx.AsyncClient unless one is injected.
        Dependencies: Uses httpx.
        Failure Modes: None at init; an empty URL is reported per call.
        If Removed: The orchestrator cannot reach the assistant.
        Testing Notes: Inject an AsyncClient built on httpx.MockTransport.
        """
        self._endpoint_url = endpoint_url
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """Purpose: Send the whole conversation and return the reply text.
        Inputs/Outputs: Input is the role/content message list; output is the reply.
        Side Effects / State: Issues exactly one POST; no retries.
        Dependencies: Uses httpx and extract_reply.
        Failure Modes: Raises TransportError on network failure, timeout, a missing
            endpoint, or a non-JSON body; raises ServiceError on an error payload.
        If Removed: Chat turns cannot produce replies.
        Testing Notes: Cover reply, error string, error object, non-JSON, and
            connection failure cases.
        """
        if not self._endpoint_url:
            raise TransportError("Chat endpoint is not configured")
        try:
            response = await self._http.post(self._endpoint_url, json={"messages": messages})
        except httpx.HTTPError as exc:
            logger.warning("chat transport failed url=%s error=%s", self._endpoint_url, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("chat response not json status=%s", response.status_code)
            raise TransportError("Chat endpoint returned a non-JSON body") from exc

        error = extract_error(data)
        if error:
            logger.info("chat service error status=%s error=%s", response.status_code, error)
            raise ServiceError(error)
        if response.is_error:
            logger.warning("chat response failed status=%s", response.status_code)
            raise TransportError(f"Chat endpoint answered HTTP {response.status_code}")
        return extract_reply(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()


def extract_reply(data: Any) -> str:
    """Purpose: Pull choices[0].message.content out of a response body.
    Inputs/Outputs: Input is decoded JSON; output is the reply or FALLBACK_REPLY.
    Side Effects / State: None; pure function.
    Dependencies: None.
    Failure Modes: Any missing or empty piece yields FALLBACK_REPLY.
    If Removed: Well-formed replies cannot be displayed.
    Testing Notes: Empty choices and blank content both fall back.
    """
    if not isinstance(data, dict):
        return FALLBACK_REPLY
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return FALLBACK_REPLY
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content:
        return content
    return FALLBACK_REPLY


def extract_error(data: Any) -> Optional[str]:
    # Accepts {"error": "text"} and {"error": {"message": "text"}}.
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if not error:
        return None
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
        return json.dumps(error, ensure_ascii=False)
    return str(error)
