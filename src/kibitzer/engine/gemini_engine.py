import json
import logging
import re
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError

from ..exceptions import (
    CircuitOpenError,
    MalformedResponseError,
    RemoteExhaustedError,
    RemoteRequestError,
    TransientRemoteError,
)
from ..utils.chess_utils import side_to_move
from .base_engine import ReasoningReply
from .credentials import CredentialPool
from .retry import CircuitBreaker, Clock, RetryPolicy

logger = logging.getLogger(__name__)

# 429 = quota / rate limit, 503 = model overloaded
TRANSIENT_STATUS = frozenset({429, 503})


def _build_endpoint(model: str, api_version: str) -> str:
    return f"https://generativelanguage.googleapis.com/{api_version}/models/{model}:generateContent"


# Prefer GA v1 for 2.x and later; keep v1beta for preview/experimental models.
def _preferred_api_version(model: str) -> str:
    if "preview" in model or "exp" in model:
        return "v1beta"
    if model.startswith("gemini-2"):
        return "v1"
    return "v1beta"


_PROMPT_TEMPLATE = """
You are a Grandmaster chess engine playing {side}.
Current board state (FEN): "{fen}"
Valid moves: {legal_moves}

Analyze the position deeply. Identify threats, hanging pieces, and tactical opportunities.
Return ONLY a strictly valid JSON object. Do NOT use markdown code blocks.
Format:
{{
  "move": "e2e4",
  "thought": "Brief strategic reasoning in {language}",
  "taunt": "A short, witty taunt in {language}"
}}
Key requirement: The 'move' MUST be in UCI format (e.g., e7e5, g8f6) and MUST be one of the valid moves provided.
""".strip()

_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE_RE = re.compile(r"```(?:json)?")


def build_prompt(fen: str, legal_moves: Sequence[str], language: str = "English") -> str:
    return _PROMPT_TEMPLATE.format(
        side=side_to_move(fen).capitalize(),
        fen=fen,
        legal_moves=json.dumps(list(legal_moves)),
        language=language,
    )


def _extract_text(resp: dict) -> str:
    """Concatenate the text parts of the first candidate; '' when absent.

    Raises :class:`MalformedResponseError` when the envelope has the wrong shape.
    """
    candidates = resp.get("candidates") or [{}]
    if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
        raise MalformedResponseError(f"Unexpected candidates in Gemini envelope: {candidates!r:.200}")
    content = candidates[0].get("content")
    if content is None:
        return ""
    # Shape A: {'content': {'parts': [{'text': ...}]}}
    if isinstance(content, dict):
        parts = content.get("parts")
        if isinstance(parts, list) and parts:
            return "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))
        return str(content.get("text", ""))  # Shape B: {'content': {'text': ...}}
    # Shape C: 'content' itself is the string
    return str(content)


def parse_reply(text: str) -> ReasoningReply:
    """Pull the JSON object out of *text* and validate it.

    Tolerates prose or markdown fences around the object.  Raises
    :class:`MalformedResponseError` on empty text or anything unparsable.
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response from reasoning service (likely safety block)")

    match = _JSON_OBJECT_RE.search(text)
    if match:
        cleaned = match.group(0)
    else:
        cleaned = _CODE_FENCE_RE.sub("", text).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Reply is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return ReasoningReply.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Reply does not match the move schema: {e}") from e


class GeminiEngine:
    """Move source backed by the Google Gemini REST API.

    Enforces a minimum spacing between dispatches, rotates API keys on 429/503
    replies and falls back to exponential backoff once every key has been
    tried.  The breaker is owned by the orchestrator; the client only refuses
    to run once it is open.
    """

    def __init__(
        self,
        credentials: CredentialPool,
        *,
        model: str = "gemini-2.0-flash",
        api_version: Optional[str] = None,
        temperature: float = 0.4,
        max_output_tokens: int = 512,
        timeout: float = 30.0,
        min_request_interval: float = 4.0,
        language: str = "English",
        retry: Optional[RetryPolicy] = None,
        breaker: Optional[CircuitBreaker] = None,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self.model = model
        self.api_version = api_version or _preferred_api_version(model)
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.min_request_interval = min_request_interval
        self.language = language
        self.retry = retry or RetryPolicy()
        self.breaker = breaker
        self.clock = clock or Clock()
        self._transport = transport

        self.last_request_at: Optional[float] = None
        self.dispatch_count = 0

    @classmethod
    def from_config(cls, cfg, **kwargs) -> "GeminiEngine":
        """Build from a :class:`ConfigModel`; extra *kwargs* override wiring."""
        reasoning = cfg.reasoning
        credentials = kwargs.pop("credentials", None)
        if credentials is None:
            credentials = CredentialPool.from_env(reasoning.api_key_env)
        return cls(
            credentials,
            model=reasoning.model,
            api_version=reasoning.api_version,
            temperature=reasoning.temperature,
            max_output_tokens=reasoning.max_output_tokens,
            timeout=reasoning.timeout,
            min_request_interval=reasoning.min_request_interval,
            language=reasoning.language,
            retry=RetryPolicy.from_config(cfg.retry),
            **kwargs,
        )

    @property
    def endpoint(self) -> str:
        return _build_endpoint(self.model, self.api_version)

    async def request(self, fen: str, legal_moves: Sequence[str]) -> ReasoningReply:
        if self.breaker is not None and self.breaker.tripped:
            raise CircuitOpenError("Remote reasoning is disabled for this session")

        # Fail fast on an empty pool, before any rate-limit wait
        self.credentials.current()

        prompt = build_prompt(fen, legal_moves, self.language)
        await self._wait_for_slot()
        text = await self._call_with_retries(prompt)
        logger.debug("Gemini raw response: %s", text)
        return parse_reply(text)

    async def _wait_for_slot(self) -> None:
        now = self.clock.now()
        if self.last_request_at is None:
            scheduled = now
        else:
            scheduled = max(now, self.last_request_at + self.min_request_interval)
        # Reserve the slot before suspending so an overlapping call queues behind it
        self.last_request_at = scheduled
        if scheduled > now:
            logger.debug("Rate limit: waiting %.2fs before next request", scheduled - now)
            await self.clock.sleep(scheduled - now)

    def _payload(self, prompt: str) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"} for category in _SAFETY_CATEGORIES
            ],
        }

    async def _call_with_retries(self, prompt: str) -> str:
        payload = self._payload(prompt)
        # Each key gets one free attempt per request; backoff only after that
        rotations_left = len(self.credentials) - 1
        delays = self.retry.delays()
        attempts = 0

        # Open a fresh HTTPX client tied to *this* event loop.
        async with httpx.AsyncClient(http2=True, timeout=self.timeout, transport=self._transport) as client:
            while True:
                attempts += 1
                self.dispatch_count += 1
                try:
                    return await self._post(client, payload, self.credentials.current())
                except TransientRemoteError as e:
                    logger.warning("Gemini API error (%s)", e)

                    if rotations_left > 0 and self.credentials.rotate():
                        rotations_left -= 1
                        logger.warning("Retrying with new key immediately...")
                        continue

                    delay = next(delays, None)
                    if delay is None:
                        raise RemoteExhaustedError(
                            f"Gemini still failing after {attempts} attempts: {e}", attempts
                        ) from e
                    logger.warning("Retrying in %.1fs...", delay)
                    await self.clock.sleep(delay)

    async def _post(self, client: httpx.AsyncClient, payload: dict, api_key: str) -> str:
        headers = {"x-goog-api-key": api_key}
        try:
            r = await client.post(self.endpoint, headers=headers, json=payload)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in TRANSIENT_STATUS:
                raise TransientRemoteError(f"HTTP {status}", status) from e
            raise RemoteRequestError(
                f"Gemini request failed. Status {status}. Body: {e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteRequestError(f"Gemini transport error: {e}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise MalformedResponseError("Gemini returned a non-JSON envelope") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Gemini returned an unexpected envelope")
        return _extract_text(data)

    async def aclose(self) -> None:
        # Nothing to close – client is per-call.
        pass
