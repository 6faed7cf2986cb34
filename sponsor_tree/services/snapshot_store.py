# sponsor_tree/services/snapshot_store.py
"""
SQL snapshot store - saves and restores a whole sponsor tree.
"""
from typing import Optional
from sqlalchemy.orm import Session
import logging

from models.member_record import MemberRecord
from sponsor_tree.config.policy import TreeVariant
from sponsor_tree.hierarchy import HierarchyIndex
from sponsor_tree.models.member import Member, MemberStatus
from sponsor_tree.services.persistence_codec import rebuild_index

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Replace-all snapshots of a HierarchyIndex in the tree_members table."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, index: HierarchyIndex) -> int:
        """
        Replace stored snapshot with the current tree.

        Returns:
            Number of rows written
        """
        try:
            self.session.query(MemberRecord).delete()

            ordered = index.preorder()
            for position, member in enumerate(ordered):
                record = MemberRecord()
                record.position = position
                record.memberId = member.memberId
                record.name = member.name
                record.sponsorId = member.sponsorId
                record.ownSales = member.ownSales
                record.commissionRate = member.commissionRate
                record.status = member.status.name
                record.phone = member.phone
                record.balance = member.balance
                self.session.add(record)

            self.session.commit()

        except Exception as e:
            logger.error(f"Error saving snapshot: {e}", exc_info=True)
            self.session.rollback()
            raise

        logger.info(f"Snapshot saved: {len(ordered)} members")
        return len(ordered)

    def load(self, variant: Optional[TreeVariant] = None) -> HierarchyIndex:
        """Rebuild the stored tree; empty index when nothing is stored."""
        records = self.session.query(MemberRecord).order_by(MemberRecord.position).all()

        entries = []
        for record in records:
            member = Member(record.memberId, record.name)
            member.addOwnSales(record.ownSales or 0.0)
            member.setCommissionRate(record.commissionRate or 0.0)
            member.setStatus(MemberStatus[record.status])
            member.setPhone(record.phone)
            member.credit(record.balance or 0.0)
            entries.append((member, record.sponsorId or ""))

        index = rebuild_index(entries, variant or TreeVariant.UNBOUNDED)
        logger.info(f"Snapshot loaded: {len(index)} of {len(records)} members")
        return index
