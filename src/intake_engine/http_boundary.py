"""HttpModelBoundary: ``ModelBoundary`` over a JSON-over-HTTP model gateway.

Each turn is one POST of ``{"taskType", "prompt", "context"}`` to the
configured URL.  The gateway may answer in three shapes, tried in order:

  1. the turn object itself (has a ``message`` key)
  2. ``{"json": {...turn object...}}``
  3. ``{"text": "...free text containing a JSON object..."}``

Any transport failure, non-2xx status, or reply that does not parse into a
``TurnResponse`` is raised as ``ExternalBoundaryError``.  No retries; the
orchestrator falls back to a fixed question instead.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from intake_engine.errors import ExternalBoundaryError
from intake_engine.interfaces import ModelBoundary
from intake_engine.models.boundary import TurnRequest, TurnResponse
from intake_engine.prompt import PromptManager

logger = logging.getLogger(__name__)

DEFAULT_TASK_TYPE = "intake_turn"
DEFAULT_TIMEOUT = 30.0

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_turn_payload(body: Any) -> dict[str, Any]:
    """Pull the turn object out of a gateway reply body.

    Raises:
        ExternalBoundaryError: if none of the accepted shapes match.
    """
    if not isinstance(body, dict):
        raise ExternalBoundaryError(f"Unexpected reply type: {type(body).__name__}")
    if "message" in body:
        return body
    if isinstance(body.get("json"), dict):
        return body["json"]
    text = body.get("text")
    if isinstance(text, str):
        match = _JSON_OBJECT.search(text)
        if match is None:
            raise ExternalBoundaryError("No JSON object found in text reply")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise ExternalBoundaryError(f"Malformed JSON in text reply: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ExternalBoundaryError("Text reply JSON is not an object")
        return parsed
    raise ExternalBoundaryError("Reply has none of message/json/text")


class HttpModelBoundary(ModelBoundary):
    """Calls a remote model gateway over HTTP.

    Args:
        url: gateway endpoint.
        prompts: renders the prompt when the request does not carry one.
        task_type: value sent as ``taskType``.
        timeout: per-request timeout in seconds.
        client: optional pre-built ``httpx.AsyncClient`` (tests pass one
            with a mock transport).  A client passed in is not closed by
            ``aclose``.
    """

    def __init__(
        self,
        url: str,
        *,
        prompts: PromptManager | None = None,
        task_type: str = DEFAULT_TASK_TYPE,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._prompts = prompts or PromptManager()
        self._task_type = task_type
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def next_turn(self, request: TurnRequest) -> TurnResponse:
        prompt = request.prompt or self._prompts.render_turn(request)
        payload = {
            "taskType": self._task_type,
            "prompt": prompt,
            "context": {
                "session_id": request.session_id,
                "turn_number": request.turn_number,
                "is_first_turn": request.is_first_turn,
                "archetype": request.archetype.value,
                "friction_strategy": request.friction.strategy.value,
            },
        }

        try:
            resp = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise ExternalBoundaryError(f"Model gateway request failed: {exc}") from exc

        if not resp.is_success:
            raise ExternalBoundaryError(
                f"Model gateway returned HTTP {resp.status_code}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise ExternalBoundaryError(f"Model gateway reply is not JSON: {exc}") from exc

        data = extract_turn_payload(body)
        try:
            response = TurnResponse.model_validate(data)
        except ValidationError as exc:
            raise ExternalBoundaryError(f"Model reply failed validation: {exc}") from exc

        logger.debug(
            "Model turn for session %s: field=%s widget=%s",
            request.session_id,
            response.currently_asking_field,
            response.widget.type if response.widget else None,
        )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
