import logging
from pathlib import Path
from typing import Any, Optional

import tiktoken
from adapters import BaseEmbedder, BaseLLM
from config import get_config_value
from errors import ValidationError
from models.chunk import QueryResult, RetrievalResult
from stores import BaseVectorStore
from .base import (
    DEFAULT_CONTEXT_TEMPLATE,
    DEFAULT_MAX_CONTEXT_TOKENS,
    DEFAULT_TOP_K,
    check_dimensions,
    create_embedder_from_config,
    create_llm_from_config,
    create_store_for_embedder,
)

logger = logging.getLogger(__name__)

NO_RELEVANT_INFORMATION_ANSWER = (
    "I couldn't find any relevant information in the uploaded documents "
    "to answer your question."
)
ENCODING_CACHE: dict[str, tiktoken.Encoding] = {}


def get_tokenizer(model: str) -> tiktoken.Encoding:
    if model not in ENCODING_CACHE:
        try:
            ENCODING_CACHE[model] = tiktoken.encoding_for_model(model)
        except KeyError:
            ENCODING_CACHE[model] = tiktoken.get_encoding("cl100k_base")
    return ENCODING_CACHE[model]


def count_tokens(text: str, model: str = "gpt-4o-mini") -> int:
    encoder = get_tokenizer(model)
    return len(encoder.encode(text))


def format_document(index: int, result: RetrievalResult) -> str:
    return f"[Document {index}] (source: {result.source})\n{result.text}"


class RetrievalPipeline:
    """Pipeline for answering questions from the stored collection.

    Supports dependency injection for flexible composition.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        llm: BaseLLM,
        vector_store: BaseVectorStore,
        top_k: int = DEFAULT_TOP_K,
        context_template: str = DEFAULT_CONTEXT_TEMPLATE,
        max_context_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS,
    ):
        check_dimensions(embedder, vector_store)
        self.embedder = embedder
        self.llm = llm
        self.vector_store = vector_store
        self.top_k = top_k
        self.context_template = context_template
        self.max_context_tokens = max_context_tokens

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        config_path: Optional[Path] = None,
        vector_store: Optional[BaseVectorStore] = None,
    ) -> "RetrievalPipeline":
        """Create pipeline from configuration dictionary."""
        embedder = create_embedder_from_config(config)
        if vector_store is None:
            vector_store = create_store_for_embedder(config, embedder, config_path)
        llm = create_llm_from_config(config)

        top_k = get_config_value(config, "retrieval.top_k", DEFAULT_TOP_K)
        max_context_tokens = get_config_value(
            config, "retrieval.max_context_tokens", DEFAULT_MAX_CONTEXT_TOKENS
        )
        context_template = config.get("retrieval", {}).get(
            "context_template", DEFAULT_CONTEXT_TEMPLATE
        )

        return cls(
            embedder=embedder,
            llm=llm,
            vector_store=vector_store,
            top_k=top_k,
            context_template=context_template,
            max_context_tokens=max_context_tokens,
        )

    def retrieve(self, question: str, top_k: Optional[int] = None) -> list[RetrievalResult]:
        """Retrieve the chunks closest to a question, best first."""
        k = self.top_k if top_k is None else top_k
        if k <= 0:
            return []
        logger.info(f"Embedding question: {question[:50]}...")

        query_embedding = self.embedder.embed(question)
        results = self.vector_store.search(query_embedding, k=k)

        logger.info(f"Found {len(results)} results")
        return sorted(results, key=lambda r: r.score, reverse=True)[:k]

    def build_context(self, question: str, results: list[RetrievalResult]) -> str:
        """Join numbered documents until the token budget is spent."""
        model = getattr(self.llm, "model", "gpt-4o-mini")
        template_overhead = count_tokens(
            self.context_template.format(context="", question=question), model
        )
        available_tokens = self.max_context_tokens - template_overhead

        blocks = []
        current_tokens = 0
        for i, result in enumerate(results, start=1):
            block = format_document(i, result)
            block_tokens = count_tokens(block, model)
            if current_tokens + block_tokens > available_tokens:
                logger.warning(
                    f"Context truncated to {len(blocks)} of {len(results)} documents "
                    f"({current_tokens} tokens, limit: {self.max_context_tokens})"
                )
                break
            blocks.append(block)
            current_tokens += block_tokens

        return "\n\n".join(blocks)

    def _answer_with_context(
        self, question: str, results: list[RetrievalResult]
    ) -> tuple[str, str]:
        if not results:
            logger.info("No relevant chunks found")
            return NO_RELEVANT_INFORMATION_ANSWER, ""

        context = self.build_context(question, results)
        if not context:
            logger.warning("No retrieved document fits the context limit")
            return NO_RELEVANT_INFORMATION_ANSWER, ""

        prompt = self.context_template.format(context=context, question=question)
        logger.info("Generating response...")
        return self.llm.generate(prompt), context

    def answer(self, question: str, results: list[RetrievalResult]) -> str:
        """Answer from the given results only.

        The chat model is not called when there are no results or when
        none of them fits the context limit.
        """
        answer, _ = self._answer_with_context(question, results)
        return answer

    def query(self, question: Optional[str]) -> QueryResult:
        """Execute a full RAG query: retrieve and generate."""
        if not question or not question.strip():
            raise ValidationError("Query is required", field="query")

        results = self.retrieve(question)
        answer, context = self._answer_with_context(question, results)

        return QueryResult(
            answer=answer,
            chunksRetrieved=len(results),
            sources=list(dict.fromkeys(r.source for r in results)),
            debug={
                "contextLength": len(context),
                "chunkSizes": [len(r.text) for r in results],
            },
        )
