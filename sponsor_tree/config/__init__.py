from sponsor_tree.config.policy import (
    TreeVariant,
    BINARY_MAX_CHILDREN,
    DEFAULT_UPLINE_WEIGHT_EXPONENT,
    ROOT_ID_PREFIX,
    check_upline_weight_exponent,
    get_upline_weight_exponent,
    get_tree_variant,
)

__all__ = [
    'TreeVariant',
    'BINARY_MAX_CHILDREN',
    'DEFAULT_UPLINE_WEIGHT_EXPONENT',
    'ROOT_ID_PREFIX',
    'check_upline_weight_exponent',
    'get_upline_weight_exponent',
    'get_tree_variant',
]
