"""Language-model service: OpenAI chat completions with response caching and schema validation."""

import hashlib
import json
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Type

import openai
from diskcache import Cache
from pydantic import BaseModel, ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import settings
from ..core.constants import LLMConstants
from ..core.errors import LLMServiceError

logger = logging.getLogger(__name__)

TRANSIENT_OPENAI_ERRORS = (openai.RateLimitError, openai.APIConnectionError, openai.APITimeoutError)


def _strip_code_fences(s: str) -> str:
    s = s.strip()
    return re.sub(r"^```(?:json)?|```$", "", s, flags=re.IGNORECASE | re.MULTILINE).strip()


def _safe_json_loads(s: str) -> Any:
    """Parse JSON from a model response, tolerating code fences and surrounding prose."""
    cleaned = _strip_code_fences(s or "")
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    obj_match = re.search(r"\{.*\}", cleaned, re.S)
    if obj_match:
        try:
            return json.loads(obj_match.group(0))
        except ValueError:
            pass

    raise ValueError(f"Could not parse JSON from: {cleaned[:200]}...")


def parse_structured(text: str, schema: Type[BaseModel]) -> BaseModel:
    """Validate a model response against a pydantic schema."""
    try:
        data = _safe_json_loads(text)
    except ValueError as e:
        raise LLMServiceError(str(e)) from e
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise LLMServiceError(f"Response does not match {schema.__name__}: {e.error_count()} error(s)") from e


@dataclass(frozen=True)
class ConversationContext:
    """Warm-start handle shared by every call of one run: fixed instructions under one thread id."""
    thread_id: str
    instructions: str


class LLMServiceFactory:
    """Factory for creating LLM services."""

    @staticmethod
    def create():
        """Create appropriate LLM service."""
        if settings.effective_openai_key:
            return OpenAIService()
        else:
            return FallbackLLMService()


class OpenAIService:
    """OpenAI-based LLM service."""

    available = True

    def __init__(self, client=None, model: Optional[str] = None, cache_dir: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.client = client or openai.OpenAI(api_key=settings.effective_openai_key)
        self.model = model or settings.openai_model
        self.timeout = settings.llm_timeout if timeout is None else timeout
        cache_dir = settings.llm_cache_dir if cache_dir is None else cache_dir
        self.cache = Cache(cache_dir) if cache_dir else None
        logger.info(f"OpenAI service initialized (model={self.model}, cache={'on' if self.cache else 'off'})")

    def create_context(self, instructions: str) -> ConversationContext:
        return ConversationContext(thread_id=uuid.uuid4().hex, instructions=instructions)

    def chat(self, system: str, user: str, temperature: float = 0.3,
             max_tokens: int = LLMConstants.DEFAULT_MAX_TOKENS, json_mode: bool = False) -> str:
        """Single chat completion with caching and retry on rate limits and connection errors."""
        cache_key = hashlib.md5(
            f"{self.model}|{system}|{user}|{temperature}|{max_tokens}|{json_mode}".encode()
        ).hexdigest()

        if self.cache is not None:
            cached_response = self.cache.get(cache_key)
            if cached_response:
                logger.debug(f"Cache hit for LLM request: {cache_key[:LLMConstants.CACHE_KEY_LENGTH]}...")
                return cached_response

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})
        kwargs = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": self.timeout,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        retrying = Retrying(
            stop=stop_after_attempt(LLMConstants.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(multiplier=LLMConstants.RETRY_BASE_DELAY),
            retry=retry_if_exception_type(TRANSIENT_OPENAI_ERRORS),
            reraise=True,
        )
        try:
            response = retrying(self.client.chat.completions.create, **kwargs)
        except openai.OpenAIError as e:
            logger.error(f"Chat failed: {e}")
            raise LLMServiceError(f"OpenAI request failed: {e}") from e

        result = (response.choices[0].message.content or "").strip()
        if not result:
            raise LLMServiceError("OpenAI returned an empty response")

        if self.cache is not None:
            self.cache.set(cache_key, result, expire=3600 * LLMConstants.CACHE_TTL_HOURS)
        return result

    def complete(self, prompt: str, *, system: Optional[str] = None, temperature: float = 0.3,
                 schema: Optional[Type[BaseModel]] = None, context: Optional[ConversationContext] = None,
                 max_tokens: int = LLMConstants.DEFAULT_MAX_TOKENS):
        """
        Run one prompt.

        Returns text, or a validated ``schema`` instance when one is given.
        Raises LLMServiceError when the call fails or the response has the wrong shape.
        """
        system_text = "\n\n".join(p for p in (context.instructions if context else None, system) if p)
        text = self.chat(system_text, prompt, temperature=temperature, max_tokens=max_tokens,
                         json_mode=schema is not None)
        if schema is None:
            return text
        return parse_structured(text, schema)


class FallbackLLMService:
    """Stand-in used when no API key is configured; callers switch to offline analysis."""

    available = False

    def __init__(self):
        logger.info("Using fallback LLM service")

    def create_context(self, instructions: str) -> ConversationContext:
        return ConversationContext(thread_id="offline", instructions=instructions)

    def complete(self, prompt: str, **kwargs):
        logger.warning("Fallback LLM service called - no actual LLM available")
        raise LLMServiceError("No language model configured")
