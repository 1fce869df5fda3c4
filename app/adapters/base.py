from abc import ABC, abstractmethod
from typing import List

class SummarizationAdapter(ABC):
    """
    Abstract base class for code/commit summarization providers.
    """

    @abstractmethod
    async def summarize(self, content: str, source_label: str) -> str:
        """
        Summarizes one source file.

        Args:
            content: Full file text
            source_label: Repo-relative path, used to give the model context

        Returns:
            Summary text; may be empty, which callers treat as "nothing to index".
        """
        pass

    @abstractmethod
    async def summarize_commit(self, diff: str) -> str:
        pass


class EmbeddingAdapter(ABC):
    """
    Abstract base class for embedding providers.
    Vectors must match the dimensionality of the index's vector column.
    """

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        pass
