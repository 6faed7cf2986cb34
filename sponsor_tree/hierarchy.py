# sponsor_tree/hierarchy.py
"""
Hierarchy index - owns every member of one sponsor tree.

Members live in an arena keyed by memberId; sponsor, child and sibling
links are ids looked up in the arena. Every structural mutation updates
the child order and the sibling links within the same locked call.
"""
from collections import deque
from threading import RLock
from typing import Dict, Iterator, List, Optional
import logging

from sponsor_tree.config.policy import TreeVariant, ROOT_ID_PREFIX
from sponsor_tree.errors import (
    CapacityExceeded,
    CycleDetected,
    MemberNotFound,
    RootAlreadyExists,
    SponsorNotFound,
)
from sponsor_tree.models.member import Member, MemberStatus
from sponsor_tree.utils.chain_walker import ChainWalker

logger = logging.getLogger(__name__)


class HierarchyIndex:
    """
    Sponsor tree of members with structural mutations and traversals.

    Usage:
        index = HierarchyIndex()
        index.attach("C", "Company", None)
        index.attach("A", "Alice", "C")
        index.uplines("A")  # [Company]
    """

    def __init__(self, variant: TreeVariant = TreeVariant.UNBOUNDED):
        self.variant = variant
        self.lock = RLock()
        self._members: Dict[str, Member] = {}
        self._rootId: Optional[str] = None
        self.walker = ChainWalker(self._members)

    # ============================================================
    # LOOKUP
    # ============================================================

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, memberId) -> bool:
        return memberId in self._members

    def __iter__(self) -> Iterator[Member]:
        return iter(self.members())

    @property
    def root(self) -> Optional[Member]:
        """Designated root (first top-level member), None for an empty tree."""
        return self._members.get(self._rootId) if self._rootId else None

    def find(self, memberId: str) -> Optional[Member]:
        return self._members.get(memberId)

    def get(self, memberId: str) -> Member:
        """
        Get member by id.

        Raises:
            MemberNotFound: If memberId is unknown
        """
        member = self._members.get(memberId)
        if member is None:
            raise MemberNotFound(memberId)
        return member

    def members(self) -> List[Member]:
        """All members in insertion order."""
        with self.lock:
            return list(self._members.values())

    # ============================================================
    # STRUCTURAL MUTATIONS
    # ============================================================

    def attach(
            self,
            memberId: Optional[str],
            name: str,
            sponsorId: Optional[str] = None
    ) -> Member:
        """
        Create a member and link it as trailing child of its sponsor.

        Args:
            memberId: Requested id; synthesized when empty
            name: Display name
            sponsorId: Sponsor id; None for a root-level member

        Returns:
            Created member (id may carry a -N suffix on collision)

        Raises:
            SponsorNotFound: If sponsorId is unknown
            RootAlreadyExists: Binary tree already has a root
            CapacityExceeded: Binary sponsor already has two children
        """
        with self.lock:
            sponsorId = sponsorId or None
            sponsor = None

            if sponsorId is not None:
                sponsor = self._members.get(sponsorId)
                if sponsor is None:
                    raise SponsorNotFound(sponsorId)
            elif self._rootId is not None:
                if self.variant is TreeVariant.BINARY:
                    raise RootAlreadyExists(self._rootId)
                # Later root-level members go under the existing root
                sponsor = self._members[self._rootId]

            if sponsor is not None:
                self._checkCapacity(sponsor)

            if not memberId or not memberId.strip():
                memberId = self._synthesizeId(
                    self._members[sponsorId] if sponsorId is not None else None
                )
            memberId = self._uniqueId(memberId.strip())

            member = Member(memberId, name)
            self._members[memberId] = member

            if sponsor is None:
                self._rootId = memberId
                logger.debug(f"Attached {memberId} as root")
            else:
                self._insertChild(sponsor, member, len(sponsor.childIds))
                logger.debug(f"Attached {memberId} under {sponsor.memberId}")

            return member

    def adopt(self, member: Member, sponsorId: Optional[str] = None) -> Member:
        """
        Link an already-built member (from a loader) into the tree.

        Same rules as attach except that, in the unbounded variant,
        a member without sponsor becomes an additional top-level member.

        Raises:
            ValueError: If memberId is already present
            SponsorNotFound, RootAlreadyExists, CapacityExceeded: As for attach
        """
        with self.lock:
            if member.memberId in self._members:
                raise ValueError(f"Duplicate member id: {member.memberId}")

            member.sponsorId = None
            member.childIds = []
            member.previousSiblingId = None
            member.nextSiblingId = None

            if not sponsorId:
                if self._rootId is not None and self.variant is TreeVariant.BINARY:
                    raise RootAlreadyExists(self._rootId)
                self._members[member.memberId] = member
                if self._rootId is None:
                    self._rootId = member.memberId
                return member

            sponsor = self._members.get(sponsorId)
            if sponsor is None:
                raise SponsorNotFound(sponsorId)
            self._checkCapacity(sponsor)

            self._members[member.memberId] = member
            self._insertChild(sponsor, member, len(sponsor.childIds))
            return member

    def reparent(self, memberId: str, newSponsorId: str) -> Member:
        """
        Move member (with its subtree) to the end of newSponsor's children.

        Raises:
            MemberNotFound: If memberId is unknown
            SponsorNotFound: If newSponsorId is unknown
            CycleDetected: If newSponsor is the member or one of its downlines
            CapacityExceeded: Binary sponsor already has two other children
        """
        with self.lock:
            member = self._members.get(memberId)
            if member is None:
                raise MemberNotFound(memberId)
            newSponsor = self._members.get(newSponsorId)
            if newSponsor is None:
                raise SponsorNotFound(newSponsorId)

            if self.walker.is_in_downline(newSponsorId, member):
                raise CycleDetected(memberId, newSponsorId)

            self._checkCapacity(newSponsor, moving=memberId)

            oldSponsorId = member.sponsorId
            self._detach(member)
            self._insertChild(newSponsor, member, len(newSponsor.childIds))

            if self._rootId == memberId:
                topLevel = self.topLevelMembers()
                self._rootId = topLevel[0].memberId if topLevel else None

            logger.info(f"Reparented {memberId}: {oldSponsorId} -> {newSponsorId}")
            return member

    def insertAncestor(self, childId: str, newName: str) -> Member:
        """
        Insert a new member between child and its former sponsor.

        The new member takes the child's place in the sponsor's child
        order (it is not appended as the sponsor's trailing child, so the
        sibling order seen by traversals stays the same); the child (with
        its subtree) becomes its only child.
        A rootless child gets the new member as its root.

        Raises:
            MemberNotFound: If childId is unknown
        """
        with self.lock:
            child = self._members.get(childId)
            if child is None:
                raise MemberNotFound(childId)

            oldSponsor = self._members.get(child.sponsorId) if child.sponsorId else None
            parentId = self._uniqueId(self._synthesizeId(oldSponsor))
            parent = Member(parentId, newName)
            self._members[parentId] = parent

            if oldSponsor is None:
                self._insertChild(parent, child, 0)
                if self._rootId == childId:
                    self._rootId = parentId
            else:
                position = self._detach(child)
                self._insertChild(oldSponsor, parent, position)
                self._insertChild(parent, child, 0)

            logger.info(
                f"Inserted {parentId} above {childId} "
                f"(former sponsor: {oldSponsor.memberId if oldSponsor else '<none>'})"
            )
            return parent

    def updateMember(
            self,
            memberId: str,
            commissionRate: Optional[float] = None,
            status: Optional[MemberStatus] = None,
            phone: Optional[str] = None
    ) -> Member:
        """Update business fields of a member; None leaves a field as is."""
        with self.lock:
            member = self.get(memberId)
            if commissionRate is not None:
                member.setCommissionRate(commissionRate)
            if status is not None:
                member.setStatus(status)
            if phone is not None:
                member.setPhone(phone)
            return member

    # ============================================================
    # TRAVERSALS
    # ============================================================

    def uplines(self, memberId: str) -> List[Member]:
        """Sponsors from immediate sponsor up to the root; empty if unknown or root."""
        with self.lock:
            member = self._members.get(memberId)
            if member is None:
                return []
            return self.walker.get_upline_chain(member)

    def allDownlines(self, memberId: str) -> List[Member]:
        """Pre-order list of the whole subtree below member; empty if unknown."""
        with self.lock:
            member = self._members.get(memberId)
            if member is None:
                return []
            return self.walker.get_downline_list(member)

    def directDownlines(self, memberId: str) -> List[Member]:
        with self.lock:
            member = self.get(memberId)
            return [self._members[childId] for childId in member.childIds]

    def topLevelMembers(self) -> List[Member]:
        """All members without sponsor, in insertion order."""
        with self.lock:
            return [m for m in self._members.values() if m.sponsorId is None]

    def allMembersBreadthFirst(self) -> List[Member]:
        with self.lock:
            ordered = []
            queue = deque(self.topLevelMembers())
            while queue:
                member = queue.popleft()
                ordered.append(member)
                queue.extend(self._members[childId] for childId in member.childIds)
            return ordered

    def preorder(self) -> List[Member]:
        """
        Every member, parents before children, siblings in order.

        The designated root's subtree comes first, then the other
        top-level members in insertion order, so a loader that takes the
        first sponsor-less row as root restores the same root.
        """
        with self.lock:
            ordered = []
            tops = self.topLevelMembers()
            tops.sort(key=lambda m: m.memberId != self._rootId)
            for top in tops:
                ordered.append(top)
                ordered.extend(self.walker.get_downline_list(top))
            return ordered

    def level(self, memberId: str) -> int:
        with self.lock:
            return self.walker.depth_of(self.get(memberId))

    def salesVolume(self, memberId: str) -> float:
        """Own sales of member plus own sales of its whole subtree."""
        with self.lock:
            return self.walker.subtree_volume(self.get(memberId))

    def subtreeVolumes(self) -> Dict[str, float]:
        """Subtree sales volume of every member, computed in one pass."""
        with self.lock:
            ordered = self.preorder()
            volumes = {m.memberId: m.ownSales for m in ordered}
            # Children come after their sponsor in pre-order
            for member in reversed(ordered):
                if member.sponsorId is not None:
                    volumes[member.sponsorId] += volumes[member.memberId]
            return volumes

    def validate(self) -> List[str]:
        """Integrity problems of the tree (empty list when consistent)."""
        with self.lock:
            errors = self.walker.find_integrity_errors(
                max_children=self.variant.maxChildren,
                tracks_siblings=self.variant.tracksSiblings
            )
            roots = self.topLevelMembers()
            if self.variant is TreeVariant.BINARY and len(roots) > 1:
                errors.append(f"Binary tree has {len(roots)} roots")
            return errors

    # ============================================================
    # PRIVATE HELPERS
    # ============================================================

    def _synthesizeId(self, sponsor: Optional[Member]) -> str:
        if sponsor is not None:
            return f"{sponsor.memberId}-{len(sponsor.childIds) + 1}"
        return f"{ROOT_ID_PREFIX}{len(self._members) + 1}"

    def _uniqueId(self, baseId: str) -> str:
        if baseId not in self._members:
            return baseId
        suffix = 1
        while f"{baseId}-{suffix}" in self._members:
            suffix += 1
        return f"{baseId}-{suffix}"

    def _checkCapacity(self, sponsor: Member, moving: Optional[str] = None) -> None:
        limit = self.variant.maxChildren
        if limit is None:
            return
        others = [childId for childId in sponsor.childIds if childId != moving]
        if len(others) >= limit:
            raise CapacityExceeded(sponsor.memberId, limit)

    def _insertChild(self, sponsor: Member, member: Member, position: int) -> None:
        sponsor.childIds.insert(position, member.memberId)
        member.sponsorId = sponsor.memberId

        if not self.variant.tracksSiblings:
            return

        prevId = sponsor.childIds[position - 1] if position > 0 else None
        nextId = sponsor.childIds[position + 1] if position + 1 < len(sponsor.childIds) else None
        member.previousSiblingId = prevId
        member.nextSiblingId = nextId
        if prevId is not None:
            self._members[prevId].nextSiblingId = member.memberId
        if nextId is not None:
            self._members[nextId].previousSiblingId = member.memberId

    def _detach(self, member: Member) -> Optional[int]:
        """Unlink member from its sponsor; returns its former position."""
        if member.sponsorId is None:
            return None

        sponsor = self._members[member.sponsorId]
        position = sponsor.childIds.index(member.memberId)
        del sponsor.childIds[position]

        if self.variant.tracksSiblings:
            prevId, nextId = member.previousSiblingId, member.nextSiblingId
            if prevId is not None:
                self._members[prevId].nextSiblingId = nextId
            if nextId is not None:
                self._members[nextId].previousSiblingId = prevId

        member.previousSiblingId = None
        member.nextSiblingId = None
        member.sponsorId = None
        return position
