"""Text-completion service used for concept extraction and exercise generation."""

from abc import ABC, abstractmethod
from typing import Optional
import openai
from openai import AsyncOpenAI
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tutor_pipeline.core.config import settings
from tutor_pipeline.core.exceptions import CompletionError

logger = structlog.get_logger()

TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class CompletionClient(ABC):
    """Black-box text completion: a system and a user prompt in, raw text out."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Return the raw completion text. Raises CompletionError on failure."""


class OpenAICompletionClient(CompletionClient):
    """Chat-completions backed implementation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
    ):
        api_key = api_key or settings.OPENAI_API_KEY
        if not api_key:
            logger.warning("OPENAI_API_KEY not configured; completion calls will fail")
        self.client = AsyncOpenAI(api_key=api_key or "missing-api-key")
        self.model = model or settings.OPENAI_MODEL
        self.max_retries = max_retries or settings.COMPLETION_MAX_RETRIES

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        try:
            content = await self._create(system_prompt, user_prompt, temperature, json_mode)
        except openai.OpenAIError as e:
            logger.error("Completion request failed", model=self.model, error=str(e))
            raise CompletionError(str(e)) from e

        if not content:
            raise CompletionError("Empty completion response")
        return content

    async def _create(self, system_prompt: str, user_prompt: str, temperature: float, json_mode: bool) -> Optional[str]:
        @retry(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=4, max=10),
            reraise=True,
        )
        async def _call() -> Optional[str]:
            kwargs = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                **kwargs,
            )
            return response.choices[0].message.content

        return await _call()
