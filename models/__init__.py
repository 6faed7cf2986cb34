"""
Database models for the sponsor tree snapshot store.
"""

from models.base import Base, TimestampMixin
from models.member_record import MemberRecord

__all__ = [
    'Base',
    'TimestampMixin',
    'MemberRecord',
]
