from .base import (
    QueryComplexityValidationRule,
    SchemaMixin,
    calculate_complexity,
    create_query_complexity_validator,
    default_estimators,
    get_complexity,
    should_skip_node,
)
from .estimators import (
    complexity_for_field,
    field_extensions_estimator,
    run_estimators,
    simple_estimator,
)
from .misc import *  # noqa: F401, F403
from .misc import __all__ as _misc_all

__version__ = "0.1.0"

__all__ = [
    "QueryComplexityValidationRule",
    "SchemaMixin",
    "calculate_complexity",
    "create_query_complexity_validator",
    "default_estimators",
    "get_complexity",
    "should_skip_node",
    "complexity_for_field",
    "field_extensions_estimator",
    "run_estimators",
    "simple_estimator",
    *_misc_all,
]
