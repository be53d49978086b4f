"""
Vector storage with external IDs and metadata on top of an HNSW index
"""

import logging
from typing import List, Union, Optional, Dict, Any
import pickle
import time
import numpy as np
import numpy.typing as npt

from smallworld.config import HNSWConfig, get_default_config
from smallworld.errors import DimensionMismatchError
from smallworld.hnsw.distance import normalize_vector
from smallworld.hnsw.index import HNSWIndex
from smallworld.persistence import GraphStore

Vector = npt.NDArray[np.float64]

logger = logging.getLogger(__name__)


class VectorStore:
    """
    In-memory vector database with HNSW indexing.

    This is the main entry point for smallworld. It maps caller-chosen string IDs
    and metadata onto the integer node IDs of an HNSWIndex.

    IMPORTANT: This library operates on pre-embedded vectors (numpy arrays).
    Producing embeddings is the caller's responsibility.

    Example:
        >>> store = VectorStore(dimension=2)
        >>> store.add([np.array([0.0, 0.0]), np.array([10.0, 10.0])], ids=["a", "b"])
        ['a', 'b']
        >>> store.search(np.array([0.1, 0.1]), k=1)[0]["id"]
        'a'
    """

    def __init__(
        self,
        dimension: int,
        M: Optional[int] = None,
        ef_construction: Optional[int] = None,
        ef_search: Optional[int] = None,
        normalize: Optional[bool] = None,
        config: Optional[HNSWConfig] = None,
    ) -> None:
        """
        Initialize the vector store.

        Args:
            dimension: Dimensionality of vectors
            M: HNSW max connections per node (typically 16-64)
            ef_construction: HNSW construction parameter (higher = better quality, slower)
            ef_search: Default search parameter (higher = better recall, slower)
            normalize: Whether to scale vectors to unit length before indexing
            config: HNSWConfig object. Explicit parameters above take precedence
                    over the matching config fields.
        """
        if config is None:
            config = get_default_config()

        overrides: Dict[str, Any] = {}
        if M is not None:
            overrides["M"] = M
        if ef_construction is not None:
            overrides["ef_construction"] = ef_construction
        if ef_search is not None:
            overrides["ef_search"] = ef_search
        if normalize is not None:
            overrides["normalize"] = normalize
        if overrides:
            config = HNSWConfig.from_dict({**config.to_dict(), **overrides})

        self.config = config
        self.dimension = dimension
        self.normalize = config.normalize

        self._index = HNSWIndex(dimension=dimension, config=config)

        # ID mapping: external ID <-> internal node ID
        self._id_to_node: Dict[str, int] = {}  # external_id -> node_id
        self._node_to_id: Dict[int, str] = {}  # node_id -> external_id

        # Metadata storage: external_id -> metadata dict
        self._metadata: Dict[str, dict] = {}

        self._last_latency_ms: float = 0.0

    def _prepare(self, vec: Vector) -> Vector:
        """Validate dimension, optionally normalize, cast to float64."""
        vec = np.asarray(vec, dtype=np.float64)
        if vec.ndim != 1 or len(vec) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=vec.shape[-1] if vec.ndim else 0)

        if self.normalize:
            vec = normalize_vector(vec)

        return vec

    def _generate_ids(self, count: int) -> List[str]:
        """Next 'count' free IDs of the form doc_<n>, skipping any already taken."""
        ids = []
        n = self.size()
        while len(ids) < count:
            candidate = f"doc_{n}"
            if candidate not in self._id_to_node:
                ids.append(candidate)
            n += 1
        return ids

    def add(
        self,
        vectors: Union[Vector, List[Vector]],
        ids: Optional[List[str]] = None,
        metadata: Optional[List[dict]] = None,
    ) -> List[str]:
        """
        Add vectors to the store with optional IDs and metadata.

        Args:
            vectors: Single vector or list of vectors (numpy arrays of shape (dimension,))
            ids: Optional list of external IDs (auto-generated if not provided)
            metadata: Optional list of metadata dicts (one per vector)

        Returns:
            List of external document IDs assigned to the added vectors

        Raises:
            DimensionMismatchError: If vector dimensions don't match store dimension
            ValueError: If number of IDs or metadata doesn't match number of vectors,
                or an ID is already in use
        """
        if isinstance(vectors, np.ndarray) and vectors.ndim == 1:
            vectors = [vectors]

        num_vectors = len(vectors)

        if ids is None:
            ids = self._generate_ids(num_vectors)
        elif len(ids) != num_vectors:
            raise ValueError(f"Number of IDs ({len(ids)}) doesn't match number of vectors ({num_vectors})")

        if len(set(ids)) != len(ids):
            raise ValueError("IDs must be unique within a single add() call")
        for ext_id in ids:
            if ext_id in self._id_to_node:
                raise ValueError(f"ID '{ext_id}' already exists in the store")

        if metadata is None:
            metadata = [{} for _ in range(num_vectors)]
        elif len(metadata) != num_vectors:
            raise ValueError(f"Number of metadata dicts ({len(metadata)}) doesn't match number of vectors ({num_vectors})")

        # Validate everything before touching the graph
        processed_vectors = [self._prepare(vec) for vec in vectors]

        inserted_external_ids = []
        for vec, ext_id, meta in zip(processed_vectors, ids, metadata):
            node_id = self._index.insert(vec)

            self._id_to_node[ext_id] = node_id
            self._node_to_id[node_id] = ext_id
            self._metadata[ext_id] = meta

            inserted_external_ids.append(ext_id)

        logger.debug("Added %d vectors (store size %d)", num_vectors, self.size())
        return inserted_external_ids

    def search(
        self, query: Vector, k: int = 10, ef_search: Optional[int] = None
    ) -> List[dict]:
        """
        Search for nearest neighbors.

        Args:
            query: Query vector (numpy array of shape (dimension,))
            k: Number of results to return
            ef_search: Override default ef_search for this query

        Returns:
            List of search results, closest first. Each result is a dict with
            keys: 'id', 'distance', 'vector', 'metadata'

        Raises:
            DimensionMismatchError: If query dimension doesn't match store dimension
        """
        query = self._prepare(query)

        start_time = time.perf_counter()
        results = self._index.search(query, k=k, ef=ef_search)
        self._last_latency_ms = (time.perf_counter() - start_time) * 1000.0

        formatted_results = []
        for node_id, distance in results:
            ext_id = self._node_to_id[node_id]
            formatted_results.append(
                {
                    "id": ext_id,
                    "distance": float(distance),
                    "vector": self._index.get_vector(node_id),
                    "metadata": self._metadata.get(ext_id, {}),
                }
            )

        return formatted_results

    def get(self, ext_id: str) -> dict:
        """
        Look up a stored vector and its metadata by external ID.

        Raises:
            KeyError: If the ID is unknown
        """
        node_id = self._id_to_node[ext_id]
        return {
            "id": ext_id,
            "vector": self._index.get_vector(node_id),
            "metadata": self._metadata.get(ext_id, {}),
        }

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the vector store and its graph.

        Returns:
            Dictionary with size, dimension, graph shape and last search latency
        """
        graph = self._index.graph
        return {
            "total_vectors": self.size(),
            "dimension": self.dimension,
            "max_level": graph.get_max_level(),
            "entry_point": self._node_to_id.get(graph.entry_point),
            "M": graph.M,
            "M_L": graph.M_L,
            "ef_search": self.config.ef_search,
            "last_latency_ms": self._last_latency_ms,
        }

    def size(self) -> int:
        """Get the total number of vectors in the store."""
        return self._index.size()

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, ext_id: object) -> bool:
        return ext_id in self._id_to_node

    def export_graph(self, store: GraphStore) -> None:
        """Write the underlying HNSW graph to a GraphStore."""
        self._index.save(store)

    def save(self, filepath: str) -> None:
        """
        Save the vector store to disk using pickle.

        Args:
            filepath: Path to save the store (e.g., "index.pkl")
        """
        with open(filepath, 'wb') as f:
            pickle.dump(self, f)
        logger.info("Saved vector store (%d vectors) to %s", self.size(), filepath)

    @classmethod
    def load(cls, filepath: str) -> 'VectorStore':
        """
        Load a vector store from disk.

        Args:
            filepath: Path to the saved store

        Returns:
            Loaded VectorStore instance
        """
        with open(filepath, 'rb') as f:
            store = pickle.load(f)
        logger.info("Loaded vector store (%d vectors) from %s", store.size(), filepath)
        return store
