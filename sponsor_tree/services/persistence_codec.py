# sponsor_tree/services/persistence_codec.py
"""
Tab-separated persistence of a whole sponsor tree.

Format:
    id  name  sponsorId  ownSales  commissionRate  status  phone  balance
One row per member, empty sponsorId for a root. Fields holding tabs,
newlines or quotes are quoted csv-style, so any id or name survives.
"""
import csv
import io
import os
from typing import Iterable, List, Optional, Tuple
import logging

from sponsor_tree.config.policy import TreeVariant
from sponsor_tree.errors import CapacityExceeded, RootAlreadyExists
from sponsor_tree.hierarchy import HierarchyIndex
from sponsor_tree.models.member import Member, MemberStatus

logger = logging.getLogger(__name__)

FIELDS = ["id", "name", "sponsorId", "ownSales", "commissionRate", "status", "phone", "balance"]
HEADER = "\t".join(FIELDS)


def rebuild_index(
        entries: Iterable[Tuple[Member, str]],
        variant: TreeVariant = TreeVariant.UNBOUNDED
) -> HierarchyIndex:
    """
    Link loaded members into a fresh index.

    Entries are (member, rawSponsorId) in source order. A member waits
    until its sponsor is placed, so forward references resolve. Members
    whose sponsor never gets placed (missing, dropped, or in a cycle)
    become extra roots (unbounded) or are dropped (binary).
    """
    index = HierarchyIndex(variant)
    pending = list(entries)
    pendingIds = {member.memberId for member, _ in pending}

    def place(member: Member, sponsorId: str) -> None:
        pendingIds.discard(member.memberId)
        try:
            index.adopt(member, sponsorId or None)
        except RootAlreadyExists:
            logger.warning(f"Dropping {member.memberId}: binary tree already has a root")
        except CapacityExceeded:
            logger.warning(
                f"Could not add {member.name} ({member.memberId}) to {sponsorId} "
                f"(binary tree limit reached), dropping"
            )

    def orphan(member: Member, sponsorId: str) -> None:
        if variant is TreeVariant.BINARY:
            pendingIds.discard(member.memberId)
            logger.warning(
                f"Dropping {member.memberId}: sponsor {sponsorId} could not be resolved"
            )
        else:
            logger.warning(
                f"Sponsor {sponsorId} of {member.memberId} could not be resolved, "
                f"keeping it as a top-level member"
            )
            place(member, "")

    while pending:
        waiting = []
        progressed = False

        for member, sponsorId in pending:
            if not sponsorId or sponsorId in index:
                place(member, sponsorId)
                progressed = True
            elif sponsorId in pendingIds and sponsorId != member.memberId:
                waiting.append((member, sponsorId))
            else:
                orphan(member, sponsorId)
                progressed = True

        if waiting and not progressed:
            # Remaining sponsors only reference each other
            member, sponsorId = waiting.pop(0)
            orphan(member, sponsorId)

        pending = waiting

    return index


class PersistenceCodec:
    """Serialize/deserialize a HierarchyIndex to tab-separated text."""

    def __init__(self, variant: TreeVariant = TreeVariant.UNBOUNDED):
        self.variant = variant

    def serialize(self, index: HierarchyIndex) -> str:
        """Header plus one row per member, parents before children."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter="\t")

        writer.writerow(FIELDS)
        for member in index.preorder():
            writer.writerow([
                member.memberId,
                member.name,
                member.sponsorId or "",
                repr(float(member.ownSales)),
                repr(float(member.commissionRate)),
                member.status.name,
                member.phone,
                repr(float(member.balance))
            ])
        return output.getvalue()

    def deserialize(self, text: str, variant: Optional[TreeVariant] = None) -> HierarchyIndex:
        """
        Parse rows into members, then link them by sponsor id.

        Blank lines and a leading header are ignored; short or malformed
        rows and duplicate ids are skipped with a warning.
        """
        entries: List[Tuple[Member, str]] = []
        seen = set()
        skipped = 0
        first = True

        reader = csv.reader(io.StringIO(text), delimiter="\t")
        try:
            for parts in reader:
                lineNo = reader.line_num
                if not any(part.strip() for part in parts):
                    continue
                if first:
                    first = False
                    if parts[0] == FIELDS[0]:
                        continue

                if len(parts) < len(FIELDS):
                    logger.warning(f"Skipping line {lineNo}: expected {len(FIELDS)} fields, got {len(parts)}")
                    skipped += 1
                    continue

                try:
                    member = self._parseRow(parts)
                except (ValueError, KeyError) as e:
                    logger.warning(f"Skipping line {lineNo}: {e}")
                    skipped += 1
                    continue

                if member.memberId in seen:
                    logger.warning(f"Skipping line {lineNo}: duplicate id {member.memberId}")
                    skipped += 1
                    continue

                seen.add(member.memberId)
                entries.append((member, parts[2]))
        except csv.Error as e:
            # Unterminated quote swallows the rest of the text
            logger.warning(f"Stopped reading at line {reader.line_num}: {e}")

        index = rebuild_index(entries, variant or self.variant)

        logger.info(
            f"Loaded {len(index)} members "
            f"({skipped} rows skipped, {len(entries) - len(index)} dropped)"
        )
        return index

    def saveToFile(self, index: HierarchyIndex, path: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(self.serialize(index))
        logger.info(f"Saved {len(index)} members to {path}")

    def loadFromFile(self, path: str, variant: Optional[TreeVariant] = None) -> Optional[HierarchyIndex]:
        """Load index from path; None if the file does not exist."""
        if not os.path.exists(path):
            logger.warning(f"Data file not found: {path}")
            return None
        with open(path, "r", encoding="utf-8", newline="") as f:
            return self.deserialize(f.read(), variant)

    @staticmethod
    def _parseRow(parts: List[str]) -> Member:
        memberId = parts[0]
        if not memberId.strip():
            raise ValueError("empty id")

        member = Member(memberId, parts[1])
        member.addOwnSales(float(parts[3]) if parts[3].strip() else 0.0)
        member.setCommissionRate(float(parts[4]) if parts[4].strip() else 0.0)
        member.setStatus(MemberStatus[parts[5].strip().upper()])
        member.setPhone(parts[6])
        member.credit(float(parts[7]) if parts[7].strip() else 0.0)
        return member
