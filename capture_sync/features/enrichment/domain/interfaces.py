# File: capture_sync/features/enrichment/domain/interfaces.py
from abc import ABC, abstractmethod
from typing import Iterator, List

class ILLMAdapter(ABC):
    """
    Abstracts the generative-text provider.
    Messages are OpenAI-style {"role": ..., "content": ...} dicts.
    """
    @abstractmethod
    def complete(self, messages: List[dict]) -> str:
        """Returns the full completion text."""
        pass

    @abstractmethod
    def stream(self, messages: List[dict]) -> Iterator[str]:
        """Yields text deltas as they arrive."""
        pass
