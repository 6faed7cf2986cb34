# models/member_record.py
"""
Snapshot row of one sponsor tree member.
"""
from sqlalchemy import Column, Integer, String, Float
from models.base import Base, TimestampMixin


class MemberRecord(Base, TimestampMixin):
    """Member snapshot; position keeps parents before children."""
    __tablename__ = 'tree_members'

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, nullable=False, index=True)
    memberId = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False, default="")
    sponsorId = Column(String, nullable=True, index=True)
    ownSales = Column(Float, nullable=False, default=0.0)
    commissionRate = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default='ACTIVE')
    phone = Column(String, nullable=False, default="")
    balance = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<MemberRecord(memberId={self.memberId}, sponsorId={self.sponsorId})>"
