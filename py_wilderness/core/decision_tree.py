"""
Wilderness decision tree.

Maps (height, population, law) parameters to wilderness generation types.
Every generation type owns an axis-aligned box in parameter space; boxes may
overlap, in which case the chance weights of the overlapping types decide.

Lookups go through a height-axis partition: the height range is cut at
every box edge and each interval keeps the types whose height range spans
it, in dataset order. The final containment test and the weighted draw are
the same as a full linear scan, so results are identical.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .terrain_types import WildGenData

logger = structlog.get_logger()


class WildDecisionTree:
    """Classifies parameter triples into generation type ids."""

    def __init__(self, gen_data: Sequence[WildGenData], prng: AleaPRNG):
        """
        Initialize the classifier.

        Args:
            gen_data: Generation types in dataset order
            prng: Generator used to break ties between overlapping types
        """
        self.gen_data = list(gen_data)
        self.prng = prng
        self.data_by_id: Dict[int, WildGenData] = {entry.id: entry for entry in self.gen_data}

        # Number of lookups that matched no box
        self.anomalies = 0

        self._build_partition()

    def _build_partition(self) -> None:
        """Pre-compute candidate lists per height interval."""
        edges = {0, 256}
        for entry in self.gen_data:
            edges.add(entry.bounds.hgtmin)
            edges.add(entry.bounds.hgtmax + 1)

        self._edges = np.array(sorted(edges), dtype=np.int64)
        self._buckets: List[List[WildGenData]] = []
        for start in self._edges[:-1]:
            self._buckets.append(
                [
                    entry
                    for entry in self.gen_data
                    if entry.bounds.hgtmin <= start <= entry.bounds.hgtmax
                ]
            )

    def _candidates(self, hgt: int) -> List[WildGenData]:
        index = int(np.searchsorted(self._edges, hgt, side="right")) - 1
        if index < 0 or index >= len(self._buckets):
            return []
        return self._buckets[index]

    def get_gen_type(self, hgt: int, pop: int, law: int) -> int:
        """
        Get the terrain generation type for the given parameters.

        Args:
            hgt: Height parameter (0-255)
            pop: Population parameter (0-255)
            law: Law parameter (0-255)

        Returns:
            The id of the matching generation type
        """
        matches = [
            entry for entry in self._candidates(hgt) if entry.bounds.contains(hgt, pop, law)
        ]

        if not matches:
            # Dataset does not cover this point
            self.anomalies += 1
            if not self.gen_data:
                return 0
            logger.warning(
                "No generation type covers parameters, using first entry",
                hgt=hgt,
                pop=pop,
                law=law,
                fallback=self.gen_data[0].id,
            )
            return self.gen_data[0].id

        if len(matches) == 1:
            return matches[0].id

        return self._select_by_chance(matches)

    def get_gen_data(self, type_id: int) -> Optional[WildGenData]:
        return self.data_by_id.get(type_id)

    def _select_by_chance(self, matches: List[WildGenData]) -> int:
        """Chance-weighted pick among overlapping types."""
        total_chance = sum(entry.chance for entry in matches)
        if total_chance == 0:
            return matches[0].id

        roll = int(self.prng.random() * total_chance)

        cumulative = 0
        for entry in matches:
            cumulative += entry.chance
            if roll < cumulative:
                return entry.id

        return matches[-1].id

    def find_coverage_gaps(self, step: int = 8) -> np.ndarray:
        """
        Sample the parameter cube and report points no type covers.

        Args:
            step: Sampling interval on each axis (255 is always sampled)

        Returns:
            Array of shape (n, 3) with uncovered (hgt, pop, law) points
        """
        axis = np.unique(np.append(np.arange(0, 256, step), 255))
        hgt, pop, law = (a.ravel() for a in np.meshgrid(axis, axis, axis, indexing="ij"))
        covered = np.zeros(hgt.shape, dtype=bool)

        for entry in self.gen_data:
            b = entry.bounds
            covered |= (
                (hgt >= b.hgtmin) & (hgt <= b.hgtmax)
                & (pop >= b.popmin) & (pop <= b.popmax)
                & (law >= b.lawmin) & (law <= b.lawmax)
            )

        gaps = np.column_stack([hgt, pop, law])[~covered]
        if len(gaps):
            logger.warning("Generation dataset has coverage gaps", samples=len(gaps), step=step)
        return gaps
