"""
Connectivity Analyzer

Scores how strongly each pair of resources is connected. Higher scores mean
more reasons to keep the pair in the same stack.
"""

from itertools import combinations

import structlog

from ..constants import (
    BIDIRECTIONAL_BONUS,
    EDGE_WEIGHT,
    MAX_CONNECTION_SCORE,
    SHARED_CONDITION_WEIGHT,
)
from ..models.analysis import ConnectionStrength
from ..models.graph import DependencyGraph

PairKey = tuple[str, str]
ConnectivityMap = dict[PairKey, ConnectionStrength]

logger = structlog.get_logger()


def connection_score(edge_count: int, is_bidirectional: bool, shared_conditions: int) -> float:
    """Fixed heuristic weighting, clamped to [0, 100]."""
    score = edge_count * EDGE_WEIGHT
    if is_bidirectional:
        score += BIDIRECTIONAL_BONUS
    score += shared_conditions * SHARED_CONDITION_WEIGHT
    return float(max(0, min(MAX_CONNECTION_SCORE, score)))


def analyze_connectivity(graph: DependencyGraph) -> ConnectivityMap:
    """Compute connection strength for every connected resource pair.

    Pairs with at least one edge are keyed ``(source, target)`` in edge
    direction. Pairs that only share a condition are keyed with the smaller
    logical ID first.

    Args:
        graph: Dependency graph to analyze

    Returns:
        Map of ordered pair to ConnectionStrength
    """
    edge_counts: dict[PairKey, int] = {}
    for edge in graph.edges:
        key = (edge.source, edge.target)
        edge_counts[key] = edge_counts.get(key, 0) + 1

    strengths: ConnectivityMap = {}
    for (source, target), count in edge_counts.items():
        is_bidirectional = (target, source) in edge_counts
        shared = graph.shared_conditions(source, target)
        strengths[(source, target)] = ConnectionStrength(
            source=source,
            target=target,
            edge_count=count,
            is_bidirectional=is_bidirectional,
            shared_conditions=shared,
            score=connection_score(count, is_bidirectional, len(shared)),
        )

    # Condition-only pairs grow quadratically with gated resources; built unvalidated
    condition_pairs: dict[PairKey, list[str]] = {}
    for condition in sorted(graph.condition_usage):
        for pair in combinations(sorted(graph.condition_usage[condition]), 2):
            condition_pairs.setdefault(pair, []).append(condition)

    for (first, second), shared in condition_pairs.items():
        if (first, second) in strengths or (second, first) in strengths:
            continue
        strengths[(first, second)] = ConnectionStrength.model_construct(
            source=first,
            target=second,
            edge_count=0,
            is_bidirectional=False,
            shared_conditions=shared,
            score=connection_score(0, False, len(shared)),
        )

    logger.debug(
        "Analyzed connectivity",
        pairs=len(strengths),
        edge_pairs=len(edge_counts),
    )
    return strengths


def strength_between(connectivity: ConnectivityMap, first: str, second: str) -> ConnectionStrength | None:
    """The stronger of the two directed strengths between a pair, if any."""
    forward = connectivity.get((first, second))
    backward = connectivity.get((second, first))
    if forward and backward:
        return forward if forward.score >= backward.score else backward
    return forward or backward
