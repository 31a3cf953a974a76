"""Instrumented sorting algorithms raced on an asyncio event loop."""

from .algorithms import (
    ALGORITHM_INFO,
    ALGORITHM_KEYS,
    ALGORITHMS,
    STABLE_ALGORITHMS,
    AlgorithmInfo,
    Op,
    algorithm_info,
    get_generator,
    run_to_completion,
)
from .engine import RunState, RunStats, SortRun
from .errors import InvalidConfigurationError, InvalidInputError, SortRaceError
from .model import Element, ElementState, Sequence, parse_custom_values
from .orchestrator import Benchmark, HeadToHead, LeaderboardEntry, rank

__version__ = "0.1.0"

__all__ = [
    "ALGORITHM_INFO",
    "ALGORITHMS",
    "ALGORITHM_KEYS",
    "STABLE_ALGORITHMS",
    "AlgorithmInfo",
    "Benchmark",
    "Element",
    "ElementState",
    "HeadToHead",
    "InvalidConfigurationError",
    "InvalidInputError",
    "LeaderboardEntry",
    "Op",
    "RunState",
    "RunStats",
    "Sequence",
    "SortRaceError",
    "SortRun",
    "algorithm_info",
    "get_generator",
    "parse_custom_values",
    "rank",
    "run_to_completion",
]
