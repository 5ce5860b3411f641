"""
Name: Result Merger

Responsibilities:
  - Combine the successful FragmentResults of a run into one result dict
  - Provide the four merge strategies (simple, comprehensive, prioritized,
    consensus)
  - Build the per-type synthesis of the comprehensive strategy

Collaborators:
  - domain.entities: FragmentResult, FragmentType, Priority
  - domain.model_catalog.PREFERRED_ROLES: primary recommendation choice
  - crosscutting.exceptions.NoSuccessfulFragmentsError

Constraints:
  - Failed fragments never reach a strategy
  - Zero successful fragments raises NoSuccessfulFragmentsError (this is
    what triggers the fallback chain)
  - Unknown strategy names degrade to simple with a warning

Notes:
  - simple / prioritized use a shallow dict merge: later keys overwrite
  - consensus compares values by their canonical JSON form
"""

from __future__ import annotations

import json
from collections import Counter
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

from ..crosscutting.exceptions import NoSuccessfulFragmentsError
from ..crosscutting.logger import logger
from ..domain.entities import FragmentResult, FragmentType, Priority
from ..domain.model_catalog import PREFERRED_ROLES


class MergeStrategy(str, Enum):
    SIMPLE = "simple"
    COMPREHENSIVE = "comprehensive"
    PRIORITIZED = "prioritized"
    CONSENSUS = "consensus"

    @classmethod
    def parse(cls, value: "MergeStrategy | str | None") -> "MergeStrategy":
        """R: Resolve a strategy name; unknown names fall back to simple."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(
                "Unknown merge strategy, using simple",
                extra={"merge_strategy": value},
            )
            return cls.SIMPLE


def _shallow_merge(results: Iterable[FragmentResult]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for r in results:
        if r.result:
            merged.update(r.result)
    return merged


def _base(results: Sequence[FragmentResult], strategy: MergeStrategy) -> Dict[str, Any]:
    return {
        "strategy": strategy.value,
        "models_used": [r.model.name for r in results],
        "fragments_count": len(results),
    }


def merge_simple(results: Sequence[FragmentResult]) -> Dict[str, Any]:
    return {
        **_base(results, MergeStrategy.SIMPLE),
        "merged_analysis": _shallow_merge(results),
    }


def synthesize_by_type(
    fragment_type: FragmentType, results: Sequence[FragmentResult]
) -> Dict[str, Any]:
    """
    R: Pick a primary recommendation among the results of one type.

    A result from a model whose role is preferred for the type wins
    (confidence "high"); otherwise the first result is primary
    (confidence "medium"). Alternatives are the results after the first.
    """
    primary = results[0]
    confidence = "medium"

    preferred_roles = PREFERRED_ROLES.get(fragment_type)
    if preferred_roles:
        for r in results:
            if r.model.role in preferred_roles:
                primary = r
                confidence = "high"
                break

    return {
        "primary_recommendation": primary.result,
        "primary_model": primary.model.name,
        "models_consensus": len(results) > 1,
        "alternatives": [
            {"model": r.model.name, "result": r.result} for r in results[1:]
        ],
        "confidence": confidence,
    }


def merge_comprehensive(results: Sequence[FragmentResult]) -> Dict[str, Any]:
    grouped: Dict[FragmentType, List[FragmentResult]] = {}
    for r in results:
        grouped.setdefault(r.fragment.type, []).append(r)

    return {
        "summary": "Comprehensive multi-model analysis",
        **_base(results, MergeStrategy.COMPREHENSIVE),
        "results_by_type": {
            fragment_type.value: [
                {
                    "model": r.model.name,
                    "fragment_id": r.fragment.fragment_id,
                    "result": r.result,
                }
                for r in group
            ]
            for fragment_type, group in grouped.items()
        },
        "synthesis": {
            fragment_type.value: synthesize_by_type(fragment_type, group)
            for fragment_type, group in grouped.items()
        },
    }


def merge_prioritized(results: Sequence[FragmentResult]) -> Dict[str, Any]:
    """
    R: Shallow merge where high-priority fragments win key conflicts.

    Results are applied normal first, then high, keeping their original
    order inside each priority; priority_order lists the application order.
    """
    ordered = sorted(results, key=lambda r: r.fragment.priority is Priority.HIGH)
    return {
        **_base(results, MergeStrategy.PRIORITIZED),
        "priority_order": [r.fragment.fragment_id for r in ordered],
        "merged_analysis": _shallow_merge(ordered),
    }


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def merge_consensus(results: Sequence[FragmentResult]) -> Dict[str, Any]:
    """
    R: Majority vote per key across the successful results.

    Ties go to the value seen first. agreement is the share of results
    that voted for the winning value; dissent lists the losing values.
    """
    votes: Dict[str, List[Any]] = {}
    for r in results:
        for key, value in (r.result or {}).items():
            votes.setdefault(key, []).append(value)

    consensus: Dict[str, Any] = {}
    agreement: Dict[str, float] = {}
    dissent: Dict[str, List[Any]] = {}

    for key, values in votes.items():
        counts = Counter(_canonical(v) for v in values)
        first_seen: Dict[str, Any] = {}
        for v in values:
            first_seen.setdefault(_canonical(v), v)

        # R: max() keeps the first maximal item, and first_seen is in vote order
        winner = max(first_seen, key=lambda c: counts[c])
        consensus[key] = first_seen[winner]
        agreement[key] = round(counts[winner] / len(results), 3)

        losers = [v for c, v in first_seen.items() if c != winner]
        if losers:
            dissent[key] = losers

    return {
        **_base(results, MergeStrategy.CONSENSUS),
        "consensus": consensus,
        "agreement": agreement,
        "dissent": dissent,
    }


_MERGERS: Mapping[MergeStrategy, Callable[[Sequence[FragmentResult]], Dict[str, Any]]] = {
    MergeStrategy.SIMPLE: merge_simple,
    MergeStrategy.COMPREHENSIVE: merge_comprehensive,
    MergeStrategy.PRIORITIZED: merge_prioritized,
    MergeStrategy.CONSENSUS: merge_consensus,
}


def merge_results(
    results: Sequence[FragmentResult],
    strategy: "MergeStrategy | str" = MergeStrategy.COMPREHENSIVE,
) -> Dict[str, Any]:
    """
    R: Merge the successful results of a run.

    Raises:
        NoSuccessfulFragmentsError: If no result succeeded
    """
    successful = [r for r in results if r.success]
    if not successful:
        raise NoSuccessfulFragmentsError(
            f"No fragment succeeded ({len(results)} attempted)"
        )

    resolved = MergeStrategy.parse(strategy)
    logger.info(
        "Merging fragment results",
        extra={
            "merge_strategy": resolved.value,
            "successful": len(successful),
            "failed": len(results) - len(successful),
        },
    )
    return _MERGERS[resolved](successful)
