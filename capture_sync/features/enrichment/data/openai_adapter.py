import logging
from typing import Iterator, List, Optional

from openai import OpenAI, OpenAIError

from capture_sync.core.errors import FetchFailure
from ..domain.interfaces import ILLMAdapter

logger = logging.getLogger(__name__)


class OpenAIChatAdapter(ILLMAdapter):
    """Chat completions against any OpenAI-compatible endpoint."""

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None, client: Optional[OpenAI] = None):
        self.model = model
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)

    def complete(self, messages: List[dict]) -> str:
        try:
            resp = self.client.chat.completions.create(model=self.model, messages=messages)
        except OpenAIError as e:
            logger.error(f"LLM call failed: {e}")
            raise FetchFailure(f"LLM call failed: {e}") from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    def stream(self, messages: List[dict]) -> Iterator[str]:
        try:
            response = self.client.chat.completions.create(model=self.model, messages=messages, stream=True)
            for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except OpenAIError as e:
            logger.error(f"LLM stream failed: {e}")
            raise FetchFailure(f"LLM stream failed: {e}") from e
