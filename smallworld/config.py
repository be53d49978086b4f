"""Configuration for smallworld HNSW indexes.

Usage:
    from smallworld import VectorStore, HNSWConfig

    # Default config
    store = VectorStore(dimension=384)

    # Custom config
    config = HNSWConfig(M=32, ef_search=100)
    store = VectorStore(dimension=384, config=config)

    # From file
    config = HNSWConfig.from_json("my_config.json")
    store = VectorStore(dimension=384, config=config)
"""

from typing import Dict, Any, Optional
import json
from dataclasses import dataclass, asdict


@dataclass
class HNSWConfig:
    """Configuration for an HNSW index.

    Graph shape:
        M: Maximum neighbors per node at layers > 0
        M_L: Maximum neighbors at layer 0 (None = 2*M)
        level_multiplier: Layer distribution constant mL (None = 1/ln(M))

    Search breadth:
        ef_construction: Candidate pool size per layer during insertion
        ef_search: Default candidate pool size at layer 0 during search

    Other:
        normalize: Scale vectors to unit length before indexing (VectorStore only)
        seed: Seed for level assignment (None = nondeterministic)
    """

    # Graph shape
    M: int = 16
    M_L: Optional[int] = None
    level_multiplier: Optional[float] = None

    # Search breadth
    ef_construction: int = 200
    ef_search: int = 50

    normalize: bool = False
    seed: Optional[int] = None

    # Metadata
    config_name: str = "default"

    def __post_init__(self):
        """Validate configuration."""
        if self.M < 2:
            raise ValueError("M must be >= 2")

        if self.M_L is not None and self.M_L < self.M:
            raise ValueError("M_L must be >= M")

        if self.level_multiplier is not None and self.level_multiplier <= 0.0:
            raise ValueError("level_multiplier must be positive")

        if self.ef_construction < 1:
            raise ValueError("ef_construction must be >= 1")

        if self.ef_search < 1:
            raise ValueError("ef_search must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'HNSWConfig':
        """Load configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_json(cls, filepath: str) -> 'HNSWConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"HNSWConfig("
            f"{self.config_name}, "
            f"M={self.M}, "
            f"ef_construction={self.ef_construction}, "
            f"ef_search={self.ef_search})"
        )


# Preset configurations

def get_default_config() -> HNSWConfig:
    """Default configuration (recommended)."""
    return HNSWConfig(config_name="default")


def get_fast_config() -> HNSWConfig:
    """Smaller graph and narrower search. Lower recall, faster inserts and queries."""
    return HNSWConfig(
        config_name="fast",
        M=8,
        ef_construction=64,
        ef_search=16,
    )


def get_high_recall_config() -> HNSWConfig:
    """Denser graph and wider search for recall-sensitive workloads."""
    return HNSWConfig(
        config_name="high_recall",
        M=32,
        ef_construction=400,
        ef_search=200,
    )
