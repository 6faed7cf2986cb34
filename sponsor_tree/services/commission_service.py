# sponsor_tree/services/commission_service.py
"""
Commission calculation service - splits sales between seller and upline.
"""
from typing import Dict, List, Optional, Sequence
import logging
import math

from sponsor_tree.config.policy import check_upline_weight_exponent, get_upline_weight_exponent
from sponsor_tree.errors import InvalidAmount
from sponsor_tree.hierarchy import HierarchyIndex
from sponsor_tree.models.member import Member

logger = logging.getLogger(__name__)


class CommissionService:
    """Service for crediting sale commissions through the sponsor chain."""

    def __init__(self, index: HierarchyIndex, weightExponent: Optional[float] = None):
        """
        Raises:
            ValueError: If the exponent (given or configured) is negative or not finite
        """
        self.index = index
        if weightExponent is None:
            self.weightExponent = get_upline_weight_exponent()
        else:
            self.weightExponent = check_upline_weight_exponent(weightExponent)

    def distributeByPosition(
            self,
            sellerId: str,
            saleAmount: float,
            percentages: Sequence[float]
    ) -> List[Dict]:
        """
        Credit saleAmount * percentages[i] to the i-th upline, nearest first.

        Index 0 is the immediate sponsor. Percentages are absolute fractions
        of the sale and are NOT normalized; entries beyond the chain are ignored.

        Raises:
            MemberNotFound: If seller is unknown
            InvalidAmount: If amount or a percentage is negative
        """
        self._checkAmount(saleAmount, "sale amount")
        for pct in percentages:
            self._checkAmount(pct, "percentage")

        with self.index.lock:
            self.index.get(sellerId)
            uplines = self.index.uplines(sellerId)

            commissions = []
            for i, (pct, upline) in enumerate(zip(percentages, uplines)):
                amount = saleAmount * pct
                upline.credit(amount)
                commissions.append(self._entry(upline, i + 1, pct, amount))

                logger.debug(
                    f"Level {i + 1} upline {upline.name} receives {amount:.2f} ({pct * 100:.2f}%)"
                )

        logger.info(
            f"Distributed sale {saleAmount:.2f} of {sellerId} by position: "
            f"{len(commissions)} uplines credited"
        )
        return commissions

    def recordSale(
            self,
            sellerId: str,
            amount: float,
            explicitPercentages: Optional[Sequence[float]] = None
    ) -> Dict:
        """
        Record a sale: seller keeps its commission rate, remainder goes upline.

        Remainder pool = amount * (1 - rate), split root-first:
        - default: weights (k - i) ** exponent, normalized (root gets most)
        - explicitPercentages: divided by their own sum, index 0 = root;
          sum <= 0 distributes nothing

        Inactive sellers are reported and nothing changes.

        Returns:
            Result dict with selfCommission, commissions and totals

        Raises:
            MemberNotFound: If seller is unknown
            InvalidAmount: If amount or a percentage is negative
        """
        self._checkAmount(amount, "sale amount")
        if explicitPercentages is not None:
            for pct in explicitPercentages:
                self._checkAmount(pct, "percentage")

        with self.index.lock:
            seller = self.index.get(sellerId)

            results = {
                "success": True,
                "sellerId": sellerId,
                "amount": amount,
                "selfCommission": 0.0,
                "pool": 0.0,
                "commissions": [],
                "totalDistributed": 0.0,
                "undistributed": 0.0
            }

            if not seller.isActive:
                logger.warning(
                    f"Cannot record sale for {sellerId}: seller is {seller.status.value}"
                )
                results["success"] = False
                results["error"] = "Seller is not active"
                return results

            # 1. Seller keeps own commission
            selfCommission = amount * seller.commissionRate
            seller.addOwnSales(amount)
            seller.credit(selfCommission)
            results["selfCommission"] = selfCommission

            logger.debug(
                f"Seller {seller.name} receives own commission {selfCommission:.2f} "
                f"({seller.commissionRate * 100:.2f}%)"
            )

            # 2. Remainder goes to the upline, root first
            uplines = self.index.uplines(sellerId)
            if not uplines:
                logger.info(f"Recorded sale {amount:.2f} for root-level {sellerId}")
                return results

            pool = amount * (1.0 - seller.commissionRate)
            results["pool"] = pool

            if explicitPercentages is None:
                shares = self.uplineWeights(len(uplines))
            else:
                shares = self._normalize(explicitPercentages)

            rootFirst = list(reversed(uplines))
            for i, share in enumerate(shares):
                commission = pool * share
                if i >= len(rootFirst):
                    results["undistributed"] += commission
                    continue

                upline = rootFirst[i]
                upline.credit(commission)
                # Level counted from the seller: immediate sponsor is level 1
                results["commissions"].append(
                    self._entry(upline, len(rootFirst) - i, share, commission)
                )
                results["totalDistributed"] += commission

                logger.debug(
                    f"Upline {upline.name} receives {commission:.2f} "
                    f"({share * 100:.2f}% of distribution)"
                )

        logger.info(
            f"Recorded sale {amount:.2f} for {sellerId}: "
            f"self {results['selfCommission']:.2f}, "
            f"distributed {results['totalDistributed']:.2f} to {len(results['commissions'])} uplines"
        )
        return results

    def uplineWeights(self, count: int) -> List[float]:
        """
        Root-first distribution shares for a chain of count uplines.

        Weight of position i is (count - i) ** exponent, normalized to sum 1,
        so shares decrease from the root to the immediate sponsor.
        """
        if count <= 0:
            return []
        weights = [float(count - i) ** self.weightExponent for i in range(count)]
        total = sum(weights)
        return [w / total for w in weights]

    @staticmethod
    def _normalize(percentages: Sequence[float]) -> List[float]:
        total = sum(percentages)
        if total <= 0:
            return []
        return [p / total for p in percentages]

    @staticmethod
    def _checkAmount(value: float, what: str) -> None:
        if not math.isfinite(value) or value < 0:
            raise InvalidAmount(value, what)

    @staticmethod
    def _entry(member: Member, level: int, share: float, amount: float) -> Dict:
        return {
            "memberId": member.memberId,
            "name": member.name,
            "level": level,
            "share": share,
            "amount": amount
        }
