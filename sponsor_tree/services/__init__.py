from sponsor_tree.services.commission_service import CommissionService
from sponsor_tree.services.ranking_service import RankingService
from sponsor_tree.services.persistence_codec import PersistenceCodec, rebuild_index, HEADER

__all__ = ['CommissionService', 'RankingService', 'PersistenceCodec', 'rebuild_index', 'HEADER']
