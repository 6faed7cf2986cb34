"""
Sponsor tree structural variants and distribution policy constants.
Exponent can be overridden via Config module.
"""
from enum import Enum
import logging
import math

logger = logging.getLogger(__name__)


class TreeVariant(Enum):
    """Structural variant of the sponsor tree."""
    UNBOUNDED = "unbounded"
    BINARY = "binary"

    @property
    def maxChildren(self):
        """Child limit per member, None when unlimited."""
        return BINARY_MAX_CHILDREN if self is TreeVariant.BINARY else None

    @property
    def tracksSiblings(self) -> bool:
        return self is TreeVariant.UNBOUNDED


BINARY_MAX_CHILDREN = 2

# Square-root decay: root receives the largest share of the upline pool
DEFAULT_UPLINE_WEIGHT_EXPONENT = 0.5

# Synthesized ids for rootless members: "M1", "M2", ...
ROOT_ID_PREFIX = "M"


def get_upline_weight_exponent() -> float:
    """
    Get upline weight exponent from Config module.

    Returns:
        Configured exponent, or DEFAULT_UPLINE_WEIGHT_EXPONENT if not set

    Raises:
        ValueError: If the configured exponent is negative or not finite
    """
    from config import Config

    value = Config.get(Config.UPLINE_WEIGHT_EXPONENT)
    if value is None:
        return DEFAULT_UPLINE_WEIGHT_EXPONENT
    return check_upline_weight_exponent(value)


def check_upline_weight_exponent(value) -> float:
    """
    Coerce exponent to float.

    Raises:
        ValueError: If exponent is negative or not finite (a negative
            exponent would give the immediate sponsor the largest share)
    """
    exponent = float(value)
    if not math.isfinite(exponent) or exponent < 0:
        raise ValueError(f"Upline weight exponent must be a finite number >= 0, got {value!r}")
    return exponent


def get_tree_variant() -> TreeVariant:
    """Get configured tree variant, UNBOUNDED if not set."""
    from config import Config

    value = Config.get(Config.TREE_VARIANT)
    if value is None:
        return TreeVariant.UNBOUNDED
    if isinstance(value, TreeVariant):
        return value
    return TreeVariant(str(value).lower())
