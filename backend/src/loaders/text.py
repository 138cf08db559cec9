from llama_index.core.schema import Document as LlamaDocument

from errors import ValidationError
from .base import BaseDocumentLoader

DIRECT_INPUT_SOURCE = "direct_input"


class TextLoader(BaseDocumentLoader):
    """Wraps pasted text verbatim into a single document."""

    def load(self, text: str) -> list[LlamaDocument]:
        if not text or not text.strip():
            raise ValidationError("Text input is blank", field="text")
        return [LlamaDocument(text=text, metadata={"source": DIRECT_INPUT_SOURCE})]
