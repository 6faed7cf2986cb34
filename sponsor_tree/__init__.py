# sponsor_tree/__init__.py
"""
Sponsor tree - multi-level referral hierarchy with upline commissions.
"""

# Errors
from sponsor_tree.errors import (
    SponsorTreeError,
    SponsorNotFound,
    MemberNotFound,
    RootAlreadyExists,
    CapacityExceeded,
    CycleDetected,
    InvalidAmount,
    InvalidCommissionRate,
)

# Models and configuration
from sponsor_tree.models.member import Member, MemberStatus
from sponsor_tree.config.policy import TreeVariant

# Tree
from sponsor_tree.hierarchy import HierarchyIndex

# Services
from sponsor_tree.services.commission_service import CommissionService
from sponsor_tree.services.ranking_service import RankingService
from sponsor_tree.services.persistence_codec import PersistenceCodec

__all__ = [
    # Errors
    'SponsorTreeError',
    'SponsorNotFound',
    'MemberNotFound',
    'RootAlreadyExists',
    'CapacityExceeded',
    'CycleDetected',
    'InvalidAmount',
    'InvalidCommissionRate',

    # Models & config
    'Member',
    'MemberStatus',
    'TreeVariant',

    # Tree
    'HierarchyIndex',

    # Services
    'CommissionService',
    'RankingService',
    'PersistenceCodec',
]
