import logging
from typing import Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from llama_index.core.schema import Document as LlamaDocument

from adapters.utils import DEFAULT_USER_AGENT, create_session_with_pooling
from errors import FetchError, ParseError, ValidationError
from .base import BaseDocumentLoader

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 15
MARKUP_CONTENT_TYPES = ("html", "xml")


class UrlLoader(BaseDocumentLoader):
    """Fetches a web page and keeps only paragraph text.

    Each non-blank ``<p>`` element becomes one document.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or create_session_with_pooling(
            user_agent=DEFAULT_USER_AGENT
        )

    def load(self, url: str) -> list[LlamaDocument]:
        if urlparse(url).scheme not in ("http", "https"):
            raise ValidationError(f"URL must use http or https: {url}", field="url")

        html = self._fetch(url)
        soup = BeautifulSoup(html, "html.parser")
        if soup.find() is None:
            raise ParseError(f"Content at {url} is not parseable markup")

        title = soup.title.get_text(strip=True) if soup.title else ""
        documents = []
        for paragraph in soup.find_all("p"):
            text = paragraph.get_text(" ", strip=True)
            if not text:
                continue
            documents.append(
                LlamaDocument(
                    text=text,
                    metadata={
                        "source": url,
                        "title": title,
                        "paragraph": len(documents),
                    },
                )
            )

        logger.info(f"Extracted {len(documents)} paragraphs from {url}")
        return documents

    def _fetch(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}", details={"url": url}) from e

        content_type = response.headers.get("Content-Type", "").lower()
        if content_type and not any(t in content_type for t in MARKUP_CONTENT_TYPES):
            raise ParseError(
                f"Content at {url} is not HTML",
                details={"url": url, "content_type": content_type},
            )
        return response.text
