import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional, Union

from graphql.language import DirectiveNode
from graphql.type import GraphQLField
from graphql.utilities import value_from_ast_untyped

from .misc import MISSING, Complexity

logger = logging.getLogger(__name__)

Estimator = Callable[..., Optional[Union[int, float]]]

# key under which strawberry stores its field definition
_strawberry_backref = "strawberry-definition"
_complexity_directive_name = "complexity"


# From this response in Stackoverflow
# http://stackoverflow.com/a/1176023/1072990
def to_snake_case(name):
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def is_finite_number(value) -> bool:
    # bool is an int subclass but never a cost
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def run_estimators(estimators: Iterable[Estimator], **kwargs) -> Any:
    """
    Return the first finite number an estimator returns.

    Estimators are called with the keyword arguments `args`,
    `child_complexity`, `field`, `node` and `type`. Any result which is not
    a finite number counts as "no opinion". If every estimator declines,
    the cost is `1 + child_complexity`.
    """
    for estimator in estimators:
        estimate = estimator(**kwargs)
        if is_finite_number(estimate):
            return estimate
    return 1 + kwargs["child_complexity"]


def simple_estimator(default_complexity=1) -> Estimator:
    """
    Fixed cost per field plus the child complexity.

    Caution: list sizes (`limit`, `first`, ...) are not taken into account.
    Put an estimator which understands pagination arguments in front of it,
    e.g. field_extensions_estimator with multipliers.
    """

    def estimator(*, child_complexity, **_kwargs):
        return default_complexity + child_complexity

    return estimator


def _extract_complexity(scheme_field) -> Union[Complexity, MISSING]:
    while True:
        if hasattr(scheme_field, "_graphene_complexity"):
            return getattr(scheme_field, "_graphene_complexity")
        if hasattr(scheme_field, "__func__"):
            scheme_field = getattr(scheme_field, "__func__")
        else:
            break
    return MISSING


def _from_value(value) -> Union[Complexity, MISSING]:
    if isinstance(value, Complexity):
        return value
    if isinstance(value, Mapping):
        if not (
            is_finite_number(value.get("value")) or callable(value.get("value"))
        ):
            return MISSING
        return Complexity(
            value=value["value"],
            multipliers=value.get("multipliers"),
        )
    if is_finite_number(value) or callable(value):
        return Complexity(value=value)
    return MISSING


def _from_directive(directive: DirectiveNode) -> Union[Complexity, MISSING]:
    arguments = {
        argument.name.value: value_from_ast_untyped(argument.value)
        for argument in directive.arguments or ()
    }
    if not is_finite_number(arguments.get("value")):
        return MISSING
    return Complexity(
        value=arguments["value"],
        multipliers=arguments.get("multipliers"),
    )


def complexity_for_field(
    field: GraphQLField, parent_type=None, fieldname: Optional[str] = None
) -> Union[Complexity, MISSING]:
    """
    Find the declarative complexity of a field.

    Searched are in order: the graphql-core extensions, a decorated
    strawberry field, a decorated graphene field on the parent type and a
    `@complexity` directive in the SDL.
    """
    extensions = field.extensions or {}
    if "complexity" in extensions:
        result = _from_value(extensions["complexity"])
        if result is not MISSING:
            return result
    if _strawberry_backref in extensions:
        result = _extract_complexity(extensions[_strawberry_backref])
        if result is not MISSING:
            return result
    graphene_type = getattr(parent_type, "graphene_type", None)
    if graphene_type is not None and fieldname:
        for name in (to_snake_case(fieldname), fieldname):
            scheme_field = getattr(graphene_type, name, None)
            if scheme_field is not None:
                result = _extract_complexity(scheme_field)
                if result is not MISSING:
                    return result
    ast_node = field.ast_node
    if ast_node is not None:
        for directive in ast_node.directives or ():
            if directive.name.value == _complexity_directive_name:
                return _from_directive(directive)
    return MISSING


def field_extensions_estimator() -> Estimator:
    """
    Cost from per field metadata (see Complexity and complexity_for_field)

    cost = value + product(multiplier arguments) * child_complexity

    Multiplier arguments which are missing or not numeric count as 1.
    Fields without metadata are left to the next estimator.
    """

    def estimator(*, args, child_complexity, field, node, type, **kwargs):
        definition = complexity_for_field(field, type, node.name.value)
        if definition is MISSING:
            return None
        if callable(definition.value):
            return definition.value(
                args=args,
                child_complexity=child_complexity,
                field=field,
                node=node,
                type=type,
                **kwargs,
            )
        multiplier = 1
        for name in definition.multipliers:
            # args are keyed by out_name (graphene: the python name)
            argument = field.args.get(name)
            value = args.get(argument.out_name or name if argument else name)
            if is_finite_number(value):
                multiplier *= value
            else:
                logger.debug(
                    "multiplier argument %s of %s is not numeric, using 1",
                    name,
                    node.name.value,
                )
        return definition.value + multiplier * child_complexity

    return estimator
