__all__ = [
    "MISSING",
    "Complexity",
    "DEFAULT_MAXIMUM_COMPLEXITY",
    "DEFAULT_MAXIMUM_NODE_COUNT",
    "QUERY_TOO_COMPLEX",
    "InvalidComplexityConfiguration",
    "ResourceLimitReached",
    "NodeLimitReached",
    "ComplexityLimitReached",
    "QueryComplexityValidationError",
]

import sys
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

from graphql.error import GraphQLError
from graphql.type import GraphQLField


class MISSING:
    """
    custom MISSING sentinel as dataclass MISSING has different logic and
    cannot be used as Sentinel like here
    """


_deco_options = {}
if sys.version_info >= (3, 10):
    _deco_options["kw_only"] = True
    _deco_options["slots"] = True

if sys.version_info >= (3, 11):
    _deco_options["weakref_slot"] = True


DEFAULT_MAXIMUM_COMPLEXITY = 1000
DEFAULT_MAXIMUM_NODE_COUNT = 10000
# machine readable classification of node and complexity errors
QUERY_TOO_COMPLEX = "QUERY_TOO_COMPLEX"


@dataclass(frozen=True, **_deco_options)
class Complexity:
    """
    Declarative cost of a field, read by the field_extensions_estimator

    `value` is the base cost of the field or a callable which receives the
    estimator keyword arguments and returns the whole cost.
    `multipliers` names arguments whose numeric values are multiplied with
    the child complexity.

    Can be used as decorator on graphql-core, graphene and strawberry
    fields:

    >>> users = Complexity(value=2, multipliers=("limit",))(
    ...     graphene.List(User, limit=graphene.Int())
    ... )
    """

    value: Union[int, float, Callable[..., Any]] = 1
    multipliers: Sequence[str] = ()

    def __post_init__(self):
        # a single argument name is allowed instead of a sequence
        multipliers = self.multipliers
        if isinstance(multipliers, str):
            multipliers = (multipliers,)
        object.__setattr__(self, "multipliers", tuple(multipliers or ()))

    def __call__(self, field):
        if isinstance(field, GraphQLField):
            # graphql-core may share the default extensions dict
            field.extensions = {
                **(field.extensions or {}),
                "complexity": self,
            }
        else:
            setattr(field, "_graphene_complexity", self)
        return field


class InvalidComplexityConfiguration(ValueError):
    pass


class ResourceLimitReached(GraphQLError):
    pass


class NodeLimitReached(ResourceLimitReached):
    pass


class ComplexityLimitReached(ResourceLimitReached):
    pass


class QueryComplexityValidationError(Exception):
    """
    Raised by get_complexity if the query does not validate.

    `errors` contains every underlying GraphQLError, the complexity and
    node limit errors included.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(
            "Query validation failed: %s"
            % "; ".join(error.message for error in self.errors)
        )
