"""
HTTP clients for the two external services.

  - GeminiClient: Google Generative Language API (``generateContent``),
    used for prompt analysis, stress-test generation, answer evaluation
    and workflow synthesis. Always JSON output.
  - DifyClient: Dify chat-messages API in blocking mode, used to simulate
    the target agent answering a stress-test question.

Both go through workbench.retry.post_with_retry; the clients only add
request building, credential checks and response extraction.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Type

import httpx

from workbench.errors import EmptyResponse, MalformedUpstreamJSON, Unconfigured, UpstreamError
from workbench.jsonparse import parse_model_json
from workbench.models import ConversationReply
from workbench.retry import Sleeper, post_with_retry
from workbench.settings import GenerationSettings

from . import config

logger = logging.getLogger(__name__)


def extract_candidate_text(data: Any) -> str:
    """Text of ``candidates[0].content.parts[0]``, or "" when any level is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0].get("text")
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
    return text if isinstance(text, str) else ""


class GeminiClient:
    """JSON completions from the Gemini ``generateContent`` endpoint."""

    service = "Google AI"

    def __init__(
        self,
        api_key: str,
        model: str = config.GEMINI_MODEL,
        base_url: str = config.GEMINI_API_BASE_URL,
        max_attempts: int = config.MAX_ATTEMPTS,
        timeout: float = config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_config(cls, **overrides) -> "GeminiClient":
        kwargs = dict(
            api_key=config.GOOGLE_API_KEY,
            model=config.GEMINI_MODEL,
            base_url=config.GEMINI_API_BASE_URL,
            max_attempts=config.MAX_ATTEMPTS,
            timeout=config.REQUEST_TIMEOUT,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def ensure_configured(self) -> None:
        if not config.is_configured(self.api_key):
            raise Unconfigured(self.service)

    def build_request(
        self,
        text: str,
        generation: GenerationSettings,
        safety: List[Dict[str, str]],
    ) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": generation.to_dict(),
            "safetySettings": safety,
        }

    async def generate_text(
        self,
        text: str,
        generation: GenerationSettings,
        safety: List[Dict[str, str]],
        empty_key: str = "",
        context: str = "",
    ) -> str:
        """
        Run one generation and return the first candidate's text.
        ``context`` selects the stage-specific wording of UpstreamError.

        Raises UpstreamError on non-2xx, EmptyResponse when no text came back,
        RateLimited / QuotaExceeded when throttling outlasted the retries.
        """
        payload = self.build_request(text, generation, safety)
        headers = {"content-type": "application/json", "x-goog-api-key": self.api_key}

        logger.info(f"Calling gemini ({self.model}) temperature={generation.temperature}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await post_with_retry(
                client,
                self.url,
                payload,
                headers=headers,
                max_attempts=self.max_attempts,
                sleep=self._sleep,
            )

        if not response.is_success:
            logger.error(f"Gemini API error {response.status_code}: {response.text[:500]}")
            raise UpstreamError(self.service, response.status_code, response.text, context=context)

        try:
            data = response.json()
        except ValueError:
            data = None
        raw_text = extract_candidate_text(data)
        if not raw_text:
            raise EmptyResponse(empty_key or None, detail="no candidate text in Gemini response")
        return raw_text

    async def generate_json(
        self,
        text: str,
        generation: GenerationSettings,
        safety: List[Dict[str, str]],
        empty_key: str = "",
        error_cls: Type[MalformedUpstreamJSON] = MalformedUpstreamJSON,
        malformed_key: str = "",
        context: str = "",
    ) -> Dict[str, Any]:
        raw_text = await self.generate_text(text, generation, safety, empty_key=empty_key, context=context)
        return parse_model_json(raw_text, error_cls=error_cls, message_key=malformed_key)


class DifyClient:
    """Blocking chat with a Dify agent."""

    service = "Dify"

    def __init__(
        self,
        api_key: str,
        url: str = config.DIFY_API_URL,
        prompt_input: str = config.DIFY_PROMPT_INPUT,
        max_attempts: int = config.DIFY_MAX_ATTEMPTS,
        timeout: float = config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.api_key = api_key
        self.url = url
        self.prompt_input = prompt_input
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_config(cls, **overrides) -> "DifyClient":
        kwargs = dict(
            api_key=config.DIFY_API_KEY,
            url=config.DIFY_API_URL,
            prompt_input=config.DIFY_PROMPT_INPUT,
            max_attempts=config.DIFY_MAX_ATTEMPTS,
            timeout=config.REQUEST_TIMEOUT,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    def ensure_configured(self) -> None:
        if not config.is_configured(self.api_key):
            raise Unconfigured(self.service)

    def build_request(
        self,
        message: str,
        user_prompt: str = "",
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        inputs: Dict[str, Any] = {}
        if self.prompt_input and user_prompt:
            inputs[self.prompt_input] = user_prompt

        body: Dict[str, Any] = {
            "inputs": inputs,
            "query": message,
            "response_mode": "blocking",
            "user": user_id or "default_user",
        }
        if conversation_id:
            body["conversation_id"] = conversation_id
        return body

    async def chat(
        self,
        message: str,
        user_prompt: str = "",
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ConversationReply:
        payload = self.build_request(message, user_prompt, conversation_id, user_id)
        headers = {
            "content-type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        logger.info(f"Calling dify agent (conversation={conversation_id or 'new'})")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await post_with_retry(
                client,
                self.url,
                payload,
                headers=headers,
                max_attempts=self.max_attempts,
                sleep=self._sleep,
                raise_on_rate_limit=False,
            )

        if not response.is_success:
            logger.error(f"Dify API error {response.status_code}: {response.text[:500]}")
            raise UpstreamError(self.service, response.status_code, response.text, include_body=True)

        try:
            data = response.json()
        except ValueError:
            data = {}
        answer = data.get("answer") if isinstance(data, dict) else None
        if not answer:
            raise EmptyResponse("empty_conversation", detail="Dify response had no answer")

        return ConversationReply(response=str(answer), conversation_id=data.get("conversation_id"))
