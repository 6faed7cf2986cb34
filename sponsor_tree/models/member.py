# sponsor_tree/models/member.py
"""
Member node of the sponsor tree.

Structural links are member ids resolved through the owning
HierarchyIndex, never direct object references. Only the index
changes sponsorId, childIds and the sibling links.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sponsor_tree.errors import InvalidAmount, InvalidCommissionRate


class MemberStatus(Enum):
    """Member lifecycle status. Only ACTIVE members may post sales."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TERMINATED = "TERMINATED"


@dataclass
class Member:
    """One node of the sponsor tree."""
    memberId: str
    name: str

    # Structure (managed by HierarchyIndex)
    sponsorId: Optional[str] = None
    childIds: List[str] = field(default_factory=list)
    previousSiblingId: Optional[str] = None
    nextSiblingId: Optional[str] = None

    # Business state
    balance: float = 0.0
    ownSales: float = 0.0
    commissionRate: float = 0.0
    status: MemberStatus = MemberStatus.ACTIVE
    phone: str = ""

    @property
    def isRoot(self) -> bool:
        return self.sponsorId is None

    @property
    def isActive(self) -> bool:
        return self.status is MemberStatus.ACTIVE

    def credit(self, amount: float) -> None:
        """Add commission to balance. Balance never decreases."""
        if not math.isfinite(amount) or amount < 0:
            raise InvalidAmount(amount, "credit")
        self.balance += amount

    def addOwnSales(self, amount: float) -> None:
        if not math.isfinite(amount) or amount < 0:
            raise InvalidAmount(amount, "sale amount")
        self.ownSales += amount

    def setCommissionRate(self, rate: float) -> None:
        """
        Set fraction of the member's own sales kept as self-commission.

        Raises:
            InvalidCommissionRate: If rate is outside [0, 1]
        """
        rate = float(rate)
        if not 0.0 <= rate <= 1.0:
            raise InvalidCommissionRate(rate)
        self.commissionRate = rate

    def setStatus(self, status: MemberStatus) -> None:
        if not isinstance(status, MemberStatus):
            status = MemberStatus[str(status).upper()]
        self.status = status

    def setPhone(self, phone: str) -> None:
        self.phone = phone or ""

    def __str__(self):
        return f"{self.name} ({self.memberId}) - balance: {self.balance:.2f}"
