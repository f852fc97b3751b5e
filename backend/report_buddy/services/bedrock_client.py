"""
Thin wrapper over the Bedrock Runtime invoke_model API for Claude models.

Every model call in the app goes through `bedrock_client`. Failures surface as
two distinct, retryable errors:

  AIServiceError   the call itself failed (network, throttling, auth)
  AIResponseError  the model answered but the answer was empty or, for JSON
                   calls, not a JSON object
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from report_buddy.core.config import settings
from report_buddy.core.logger import logger
from report_buddy.utils.exceptions import AIResponseError, AIServiceError

ANTHROPIC_VERSION = "bedrock-2023-05-31"
CONVERSATION_OPENER = "Begin."

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def normalize_messages(messages: list[dict]) -> list[dict]:
    """
    Shape a chat history for the Anthropic messages API.

    Synthetic "system" entries become user turns, consecutive turns with the
    same role are merged, and a user opener is prepended when the history
    starts with the assistant.
    """
    out: list[dict] = []
    for message in messages:
        role = "assistant" if message.get("role") == "assistant" else "user"
        content = message.get("content") or ""
        if out and out[-1]["role"] == role:
            out[-1]["content"] = f"{out[-1]['content']}\n\n{content}"
        else:
            out.append({"role": role, "content": content})

    if not out or out[0]["role"] != "user":
        out.insert(0, {"role": "user", "content": CONVERSATION_OPENER})
    return out


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Pull the first {...} block out of a model reply; AIResponseError if there is none."""
    match = _JSON_OBJECT.search(raw_text or "")
    if not match:
        logger.warning("LLM did not return a JSON object. Raw: %s", (raw_text or "")[:500])
        raise AIResponseError(raw_text)
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse LLM JSON response: %s. Raw: %s", exc, raw_text[:500])
        raise AIResponseError(raw_text) from exc
    if not isinstance(parsed, dict):
        raise AIResponseError(raw_text)
    return parsed


class BedrockClient:
    """Calls Claude on AWS Bedrock."""

    def __init__(self) -> None:
        self.model: str = settings.BEDROCK_MODEL_ID
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=settings.AWS_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
                config=Config(read_timeout=settings.BEDROCK_READ_TIMEOUT_SECONDS),
            )
            logger.info("Bedrock client initialised with model=%s", self.model)
        return self._client

    # ------------------------------------------------------------------
    # Low-level Bedrock call
    # ------------------------------------------------------------------

    def complete(
        self,
        system: str,
        messages: list[dict],
        max_tokens: int = 2000,
        temperature: float = 0.3,
        model_id: Optional[str] = None,
    ) -> str:
        """
        Send *messages* with the *system* prompt and return the reply text.
        """
        body = json.dumps(
            {
                "anthropic_version": ANTHROPIC_VERSION,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": system,
                "messages": normalize_messages(messages),
            }
        )
        model = model_id or self.model
        try:
            response = self.client.invoke_model(
                modelId=model,
                contentType="application/json",
                accept="application/json",
                body=body,
            )
            result = json.loads(response["body"].read())
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Bedrock invoke_model failed for model=%s", model)
            raise AIServiceError(str(exc)) from exc

        text_parts: list[str] = []
        for block in result.get("content", []):
            if isinstance(block, dict) and block.get("type") == "text":
                text_parts.append(block.get("text", ""))
        text = "".join(text_parts).strip()
        if not text:
            logger.warning("Bedrock returned no text (stop_reason=%s)", result.get("stop_reason"))
            raise AIResponseError(json.dumps(result)[:500])
        return text

    def complete_text(self, system: str, prompt: str, **kwargs) -> str:
        return self.complete(system, [{"role": "user", "content": prompt}], **kwargs)

    def complete_json(self, system: str, prompt: str, **kwargs) -> dict[str, Any]:
        """Single-turn call whose reply must contain a JSON object."""
        return parse_json_object(self.complete_text(system, prompt, **kwargs))


bedrock_client = BedrockClient()
