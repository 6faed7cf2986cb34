# sponsor_tree/utils/chain_walker.py
"""
Safe sponsor chain walking utilities.
Prevents infinite loops and validates chain integrity.
"""
from typing import Optional, Callable, Set, List, Mapping
import logging

from sponsor_tree.models.member import Member

logger = logging.getLogger(__name__)


class ChainWalker:
    """
    Safe utilities for walking upline/downline chains of a member arena.
    Links are member ids looked up in the arena; walks are iterative.
    """

    def __init__(self, members: Mapping[str, Member]):
        self.members = members

    def walk_upline(
            self,
            start: Member,
            callback: Callable[[Member, int], bool],
            max_depth: Optional[int] = None
    ) -> int:
        """
        Walk up the sponsor chain, calling callback for each sponsor.

        Args:
            start: Starting member
            callback: Function(member, level) -> continue_walking (bool)
            max_depth: Optional limit on levels walked

        Returns:
            Number of sponsors processed

        Example:
            def show(member, level):
                print(f"Level {level}: {member.memberId}")
                return True  # Continue walking

            walker.walk_upline(member, show)
        """
        current = start
        level = 1
        processed = 0
        visited = {start.memberId}

        while current.sponsorId is not None:
            if max_depth is not None and level > max_depth:
                break

            sponsor = self.members.get(current.sponsorId)
            if sponsor is None:
                logger.warning(
                    f"Sponsor not found: {current.sponsorId} for member {current.memberId}"
                )
                break

            if sponsor.memberId in visited:
                logger.error(f"Cycle detected at member {sponsor.memberId}")
                break

            visited.add(sponsor.memberId)
            processed += 1

            if not callback(sponsor, level):
                break

            current = sponsor
            level += 1

        return processed

    def walk_downline(
            self,
            start: Member,
            callback: Callable[[Member, int], None],
            max_depth: Optional[int] = None
    ) -> int:
        """
        Walk the subtree below start in pre-order (each child followed by
        its own subtree, children in order).

        Args:
            start: Starting member (not passed to callback)
            callback: Function(member, depth) with depth 1 for direct children
            max_depth: Optional limit on depth

        Returns:
            Total number of members processed
        """
        visited: Set[str] = {start.memberId}
        stack = [(childId, 1) for childId in reversed(start.childIds)]
        processed = 0

        while stack:
            memberId, depth = stack.pop()

            if memberId in visited:
                logger.error(f"Cycle detected in downline at member {memberId}")
                continue

            member = self.members.get(memberId)
            if member is None:
                logger.warning(f"Downline member not found: {memberId}")
                continue

            visited.add(memberId)
            callback(member, depth)
            processed += 1

            if max_depth is None or depth < max_depth:
                stack.extend((childId, depth + 1) for childId in reversed(member.childIds))

        return processed

    def get_upline_chain(self, member: Member) -> List[Member]:
        """
        Get list of all sponsors above member.

        Returns:
            List from immediate sponsor to root
        """
        chain = []

        def collect(sponsor, level):
            chain.append(sponsor)
            return True  # Continue

        self.walk_upline(member, collect)
        return chain

    def get_downline_list(self, member: Member) -> List[Member]:
        """Get pre-order list of every member below member."""
        downline = []
        self.walk_downline(member, lambda m, depth: downline.append(m))
        return downline

    def count_downline(self, member: Member) -> int:
        """Count total number of members below member."""
        return self.walk_downline(member, lambda m, depth: None)

    def depth_of(self, member: Member) -> int:
        """Number of sponsors above member (0 for a root)."""
        return self.walk_upline(member, lambda m, level: True)

    def subtree_volume(self, member: Member) -> float:
        """Own sales of member plus own sales of every downline member."""
        total = [member.ownSales]  # Use list to allow modification in callback

        def add(downline_member, depth):
            total[0] += downline_member.ownSales

        self.walk_downline(member, add)
        return total[0]

    def is_in_downline(self, candidateId: str, ancestor: Member) -> bool:
        """
        Check whether candidateId is ancestor itself or somewhere below it.
        Walks up from the candidate, O(depth).
        """
        if candidateId == ancestor.memberId:
            return True

        candidate = self.members.get(candidateId)
        if candidate is None:
            return False

        found = [False]

        def check(sponsor, level):
            if sponsor.memberId == ancestor.memberId:
                found[0] = True
                return False  # Stop walking
            return True

        self.walk_upline(candidate, check)
        return found[0]

    def find_integrity_errors(
            self,
            max_children: Optional[int] = None,
            tracks_siblings: bool = True
    ) -> List[str]:
        """
        Validate links of every member in the arena.

        Checks:
        1. Every child points back to its sponsor, every sponsor lists its child
        2. Sibling links agree with the sponsor's child order
        3. Child count limit
        4. No member is its own ancestor

        Returns:
            List of problem descriptions (empty when the arena is consistent)
        """
        errors = []

        for member in self.members.values():
            if max_children is not None and len(member.childIds) > max_children:
                errors.append(
                    f"{member.memberId} has {len(member.childIds)} children (limit {max_children})"
                )

            for position, childId in enumerate(member.childIds):
                child = self.members.get(childId)
                if child is None:
                    errors.append(f"{member.memberId} lists unknown child {childId}")
                    continue
                if child.sponsorId != member.memberId:
                    errors.append(
                        f"{childId} is listed under {member.memberId} but points to {child.sponsorId}"
                    )

                if tracks_siblings:
                    expected_prev = member.childIds[position - 1] if position > 0 else None
                    expected_next = (
                        member.childIds[position + 1]
                        if position + 1 < len(member.childIds) else None
                    )
                    if child.previousSiblingId != expected_prev or child.nextSiblingId != expected_next:
                        errors.append(
                            f"{childId} sibling links ({child.previousSiblingId}, {child.nextSiblingId}) "
                            f"disagree with order ({expected_prev}, {expected_next})"
                        )

            if member.sponsorId is not None:
                sponsor = self.members.get(member.sponsorId)
                if sponsor is None:
                    errors.append(f"{member.memberId} points to unknown sponsor {member.sponsorId}")
                elif member.memberId not in sponsor.childIds:
                    errors.append(
                        f"{member.memberId} points to {member.sponsorId} but is not among its children"
                    )
            elif member.previousSiblingId is not None or member.nextSiblingId is not None:
                errors.append(f"Root {member.memberId} has sibling links")

            if self._has_cycle(member):
                errors.append(f"Cycle detected through {member.memberId}")

        for error in errors:
            logger.error(error)

        return errors

    def _has_cycle(self, member: Member) -> bool:
        visited = {member.memberId}
        current = member
        while current.sponsorId is not None:
            if current.sponsorId in visited:
                return True
            visited.add(current.sponsorId)
            current = self.members.get(current.sponsorId)
            if current is None:
                return False
        return False
