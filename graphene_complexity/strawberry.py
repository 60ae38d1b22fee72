from typing import Iterator, Optional

from strawberry import Schema as StrawberrySchema
from strawberry.extensions import AddValidationRules

from . import base


class QueryComplexityValidator(AddValidationRules):
    """
    Add a validator to limit the complexity of queries

    Example:

    >>> import strawberry
    >>> from graphene_complexity import simple_estimator
    >>> from graphene_complexity.strawberry import QueryComplexityValidator
    >>>
    >>> schema = strawberry.Schema(
    ...     Query,
    ...     extensions=[
    ...         QueryComplexityValidator(
    ...             estimators=[simple_estimator()],
    ...             maximum_complexity=100,
    ...         ).copy
    ...     ]
    ... )

    strawberry creates the extensions per request, so pass the class or
    the `copy` method of a configured validator.

    Arguments:

    `estimators`
        Estimators tried in order, defaults to field_extensions_estimator
        followed by simple_estimator
    `maximum_complexity`
        The highest allowed complexity
    `maximum_node_count`
        The highest allowed amount of visited selection nodes
    `on_complete`
        Called with the complexity of accepted queries
    """

    def __init__(
        self,
        estimators=base.MISSING,
        maximum_complexity=base.MISSING,
        maximum_node_count=base.MISSING,
        on_complete=None,
    ):
        if estimators is base.MISSING:
            estimators = base.default_estimators()
        if maximum_complexity is base.MISSING:
            maximum_complexity = base.DEFAULT_MAXIMUM_COMPLEXITY
        if maximum_node_count is base.MISSING:
            maximum_node_count = base.DEFAULT_MAXIMUM_NODE_COUNT
        self.estimators = list(estimators)
        self.maximum_complexity = maximum_complexity
        self.maximum_node_count = maximum_node_count
        self.on_complete = on_complete
        base.check_configuration(
            self.estimators, self.maximum_complexity, self.maximum_node_count
        )
        # the rule needs the variables of the request, see on_operation
        super().__init__([])

    def copy(self) -> "QueryComplexityValidator":
        return type(self)(
            estimators=self.estimators,
            maximum_complexity=self.maximum_complexity,
            maximum_node_count=self.maximum_node_count,
            on_complete=self.on_complete,
        )

    def on_operation(self) -> Iterator[None]:
        execution_context = self.execution_context
        complexity_rule = base.create_query_complexity_validator(
            estimators=self.estimators,
            maximum_complexity=self.maximum_complexity,
            maximum_node_count=self.maximum_node_count,
            variables=execution_context.variables,
            on_complete=self.on_complete,
        )
        execution_context.validation_rules = (
            *execution_context.validation_rules,
            complexity_rule,
        )
        yield


def _get_configured_validator(extension) -> Optional[QueryComplexityValidator]:
    # instances are deprecated by strawberry, factories are bound copy methods
    if isinstance(extension, QueryComplexityValidator):
        return extension
    validator = getattr(extension, "__self__", None)
    if isinstance(validator, QueryComplexityValidator):
        return validator
    return None


def _is_complexity_validator(extension) -> bool:
    if isinstance(extension, type):
        return issubclass(extension, QueryComplexityValidator)
    return _get_configured_validator(extension) is not None


class Schema(StrawberrySchema):
    def __init__(
        self,
        *args,
        estimators=base.MISSING,
        maximum_complexity=base.MISSING,
        maximum_node_count=base.MISSING,
        extensions=(),
        **kwargs
    ):
        extensions = tuple(extensions)
        if not any(map(_is_complexity_validator, extensions)):
            validator = self.create_complexity_validator(
                estimators, maximum_complexity, maximum_node_count
            )
            extensions = (validator.copy, *extensions)

        super().__init__(*args, extensions=extensions, **kwargs)

    def create_complexity_validator(
        self, estimators, maximum_complexity, maximum_node_count
    ) -> QueryComplexityValidator:
        return QueryComplexityValidator(
            estimators=estimators,
            maximum_complexity=maximum_complexity,
            maximum_node_count=maximum_node_count,
        )

    def get_complexity_validator(self) -> Optional[QueryComplexityValidator]:
        """The configured validator, copied for every request"""
        for extension in self.extensions:
            validator = _get_configured_validator(extension)
            if validator is not None:
                return validator
        return None
