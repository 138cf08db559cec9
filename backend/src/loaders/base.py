from abc import ABC, abstractmethod
from typing import Any

from llama_index.core.schema import Document as LlamaDocument


class BaseDocumentLoader(ABC):
    """Abstract base class for document loaders.

    A loader turns one raw input (a URL, a string, an uploaded file) into
    documents whose ``metadata["source"]`` records where they came from.
    """

    @abstractmethod
    def load(self, source: Any) -> list[LlamaDocument]:
        """Load documents from a single input."""
        pass
