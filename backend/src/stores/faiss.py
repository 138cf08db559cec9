import fcntl
import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import faiss
import numpy as np

from errors import ConfigurationError, StoreError, StoreUnavailableError
from models.chunk import Chunk, RetrievalResult
from .base import BaseVectorStore


class FAISSVectorStore(BaseVectorStore):
    """Local FAISS collection persisted next to a JSON payload file.

    Vectors are L2-normalised and searched by inner product, which ranks
    by cosine similarity. Without ``storage_dir`` the collection lives in
    memory only.

    Every operation runs under a per-instance thread lock and, on disk, an
    exclusive ``flock``. The files are re-read whenever another writer has
    changed them, so several stores and processes can share one collection.
    """

    def __init__(
        self,
        collection: str,
        dimension: int,
        storage_dir: Optional[Path] = None,
    ):
        super().__init__(collection, dimension)
        self._index_path = storage_dir / f"{collection}.faiss" if storage_dir else None
        self._payload_path = storage_dir / f"{collection}.json" if storage_dir else None
        self._thread_lock = threading.Lock()

        self._index: Optional[faiss.Index] = self._load_index()
        self._payloads: list[dict[str, Any]] = self._load_payloads()
        self._loaded_state = self._file_state()

    def _load_index(self) -> Optional[faiss.Index]:
        if self._index_path and self._index_path.exists():
            return faiss.read_index(str(self._index_path))
        return None

    def _load_payloads(self) -> list[dict[str, Any]]:
        if self._payload_path and self._payload_path.exists():
            with open(self._payload_path, "r") as f:
                return json.load(f)
        return []

    def _file_state(self) -> Optional[tuple[int, int]]:
        # The payload file is written last, so it marks a complete save
        if self._payload_path and self._payload_path.exists():
            stat = self._payload_path.stat()
            return stat.st_mtime_ns, stat.st_size
        return None

    def _refresh(self) -> None:
        state = self._file_state()
        if state is None or state == self._loaded_state:
            return
        self._index = self._load_index()
        self._payloads = self._load_payloads()
        self._loaded_state = state

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._thread_lock:
            if self._payload_path is None:
                yield
                return

            self._payload_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._payload_path.with_suffix(".lock"), "w") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    self._refresh()
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def save(self) -> None:
        if self._index_path and self._index is not None:
            self._index_path.parent.mkdir(parents=True, exist_ok=True)
            faiss.write_index(self._index, str(self._index_path))

        if self._payload_path:
            self._payload_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._payload_path, "w") as f:
                json.dump(self._payloads, f, indent=2)
            self._loaded_state = self._file_state()

    def ensure_collection(self) -> None:
        with self._locked():
            if self._index is not None:
                if self._index.d != self.dimension:
                    raise ConfigurationError(
                        f"Collection {self.collection} stores {self._index.d}-dimensional "
                        f"vectors, but the embedder produces {self.dimension}"
                    )
                return

            try:
                self._index = faiss.IndexFlatIP(self.dimension)
                self.save()
            except OSError as e:
                raise StoreError(f"Failed to create collection {self.collection}: {e}") from e

    def _normalized(self, embeddings: list[list[float]]) -> np.ndarray:
        vectors = np.array(embeddings, dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[1] != self.dimension:
            raise StoreError(
                f"Expected vectors of dimension {self.dimension}, got shape {vectors.shape}"
            )
        faiss.normalize_L2(vectors)
        return vectors

    def upsert(self, embeddings: list[list[float]], chunks: list[Chunk]) -> int:
        if len(embeddings) != len(chunks):
            raise StoreError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
            )
        if not chunks:
            return 0

        vectors = self._normalized(embeddings)

        with self._locked():
            if self._index is None:
                raise StoreError(f"Collection {self.collection} does not exist")

            try:
                self._index.add(vectors)
                self._payloads.extend(chunk.to_payload() for chunk in chunks)
                self.save()
            except OSError as e:
                raise StoreError(f"Failed to persist collection {self.collection}: {e}") from e

        return len(chunks)

    def search(self, query_embedding: list[float], k: int = 5) -> list[RetrievalResult]:
        query = self._normalized([query_embedding])

        with self._locked():
            if self._index is None:
                raise StoreUnavailableError(
                    f"Collection {self.collection} does not exist; ingest documents first"
                )
            if self._index.ntotal == 0 or k <= 0:
                return []

            scores, indices = self._index.search(query, min(k, self._index.ntotal))
            payloads = self._payloads

        results = []
        for score, idx in zip(scores[0], indices[0]):
            if 0 <= idx < len(payloads):
                results.append(RetrievalResult.from_payload(payloads[idx], float(score)))

        return results

    @property
    def count(self) -> int:
        with self._locked():
            return self._index.ntotal if self._index is not None else 0
