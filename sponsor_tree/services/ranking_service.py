# sponsor_tree/services/ranking_service.py
"""
Ranking service - orders members by subtree sales volume.
"""
from typing import Dict, List, Tuple
import logging

from sponsor_tree.hierarchy import HierarchyIndex
from sponsor_tree.models.member import Member

logger = logging.getLogger(__name__)


class RankingService:
    """Service for deterministic sales volume rankings."""

    def __init__(self, index: HierarchyIndex):
        self.index = index

    def sortBySalesVolume(self) -> List[Member]:
        """
        All members by descending subtree sales volume.

        Equal volumes keep insertion order of the index.
        """
        return [member for member, _ in self.rankedVolumes()]

    def rankedVolumes(self) -> List[Tuple[Member, float]]:
        """Same order as sortBySalesVolume, paired with each volume."""
        with self.index.lock:
            members = self.index.members()
            volumes = self.index.subtreeVolumes()

        ranked = self._mergeSort([(m, volumes[m.memberId]) for m in members])

        logger.debug(f"Ranked {len(ranked)} members by sales volume")
        return ranked

    def topSellers(self, count: int) -> List[Member]:
        return self.sortBySalesVolume()[:max(count, 0)]

    @staticmethod
    def _mergeSort(items: List[Tuple[Member, float]]) -> List[Tuple[Member, float]]:
        """
        Top-down merge sort on volume, descending.

        Each range [lo, hi) splits at lo + (hi - lo) // 2; ranges are
        resolved with an explicit stack instead of recursion.
        """
        if len(items) <= 1:
            return list(items)

        sorted_ranges: Dict[Tuple[int, int], List[Tuple[Member, float]]] = {}
        stack = [(0, len(items), False)]

        while stack:
            lo, hi, split = stack.pop()

            if hi - lo <= 1:
                sorted_ranges[(lo, hi)] = items[lo:hi]
                continue

            mid = lo + (hi - lo) // 2
            if split:
                sorted_ranges[(lo, hi)] = RankingService._merge(
                    sorted_ranges.pop((lo, mid)),
                    sorted_ranges.pop((mid, hi))
                )
            else:
                stack.append((lo, hi, True))
                stack.append((mid, hi, False))
                stack.append((lo, mid, False))

        return sorted_ranges[(0, len(items))]

    @staticmethod
    def _merge(
            left: List[Tuple[Member, float]],
            right: List[Tuple[Member, float]]
    ) -> List[Tuple[Member, float]]:
        merged = []
        i = j = 0

        while i < len(left) and j < len(right):
            # ">=" keeps the left element first on ties
            if left[i][1] >= right[j][1]:
                merged.append(left[i])
                i += 1
            else:
                merged.append(right[j])
                j += 1

        merged.extend(left[i:])
        merged.extend(right[j:])
        return merged
