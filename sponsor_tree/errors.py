# sponsor_tree/errors.py
"""
Error taxonomy for sponsor tree operations.
All errors are caller-input errors and propagate without retry.
"""
from typing import Optional


class SponsorTreeError(Exception):
    """Base class for all sponsor tree errors."""
    pass


class MemberNotFound(SponsorTreeError, LookupError):
    """Referenced member does not exist in the index."""

    def __init__(self, memberId: str):
        self.memberId = memberId
        super().__init__(f"Member not found: {memberId}")


class SponsorNotFound(SponsorTreeError, LookupError):
    """Referenced sponsor does not exist in the index."""

    def __init__(self, sponsorId: str):
        self.sponsorId = sponsorId
        super().__init__(f"Sponsor not found: {sponsorId}")


class RootAlreadyExists(SponsorTreeError):
    """Binary tree already has its single root."""

    def __init__(self, rootId: str):
        self.rootId = rootId
        super().__init__(
            f"Tree already has a root ({rootId}). Cannot add another root-level member."
        )


class CapacityExceeded(SponsorTreeError):
    """Binary tree sponsor already has its maximum number of children."""

    def __init__(self, sponsorId: str, limit: int):
        self.sponsorId = sponsorId
        self.limit = limit
        super().__init__(
            f"Sponsor {sponsorId} already has {limit} children (binary tree limit reached)."
        )


class CycleDetected(SponsorTreeError):
    """Move would place a member beneath itself."""

    def __init__(self, memberId: str, newSponsorId: str):
        self.memberId = memberId
        self.newSponsorId = newSponsorId
        super().__init__(
            f"Cannot move {memberId} under {newSponsorId}: "
            f"{newSponsorId} is {memberId} or one of its downlines."
        )


class InvalidAmount(SponsorTreeError, ValueError):
    """Sale amount, credit or percentage is negative."""

    def __init__(self, value: float, what: Optional[str] = None):
        self.value = value
        label = what or "amount"
        super().__init__(f"Invalid {label}: {value} (must be a finite number >= 0)")


class InvalidCommissionRate(SponsorTreeError, ValueError):
    """Commission rate outside [0, 1]."""

    def __init__(self, rate: float):
        self.rate = rate
        super().__init__(f"Commission rate must be between 0 and 1, got {rate}")
