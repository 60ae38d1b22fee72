import logging
import sys
from functools import wraps
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
    Union,
)

from graphql.error import GraphQLError
from graphql.execution import ExecutionResult
from graphql.execution.values import (
    get_argument_values,
    get_directive_values,
    get_variable_values,
)
from graphql.language import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    Node,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    parse,
)
from graphql.type import (
    GraphQLDirective,
    GraphQLIncludeDirective,
    GraphQLSchema,
    GraphQLSkipDirective,
    get_named_type,
    is_composite_type,
)
from graphql.validation import (
    ValidationContext,
    ValidationRule,
    specified_rules,
    validate,
)

from .estimators import (
    Estimator,
    field_extensions_estimator,
    is_finite_number,
    run_estimators,
    simple_estimator,
)
from .misc import (
    DEFAULT_MAXIMUM_COMPLEXITY,
    DEFAULT_MAXIMUM_NODE_COUNT,
    MISSING,
    QUERY_TOO_COMPLEX,
    ComplexityLimitReached,
    InvalidComplexityConfiguration,
    NodeLimitReached,
    QueryComplexityValidationError,
)

logger = logging.getLogger(__name__)

Number = Union[int, float]


def default_estimators() -> List[Estimator]:
    return [field_extensions_estimator(), simple_estimator()]


def check_configuration(estimators, maximum_complexity, maximum_node_count):
    if not is_finite_number(maximum_complexity) or maximum_complexity <= 0:
        raise InvalidComplexityConfiguration(
            f"Invalid maximum_complexity: {maximum_complexity}. "
            "Must be a positive finite number."
        )
    if not estimators:
        raise InvalidComplexityConfiguration(
            "At least one complexity estimator is required."
        )
    if (
        isinstance(maximum_node_count, bool)
        or not isinstance(maximum_node_count, int)
        or maximum_node_count <= 0
    ):
        raise InvalidComplexityConfiguration(
            f"Invalid maximum_node_count: {maximum_node_count}. "
            "Must be a positive integer."
        )


def coerce_variables(
    schema: GraphQLSchema,
    operation: OperationDefinitionNode,
    variables: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Apply types and defaults of the operation variable definitions"""
    coerced = get_variable_values(
        schema, operation.variable_definitions or (), variables or {}
    )
    if isinstance(coerced, list):
        # the errors are reported when executing, use the raw values
        logger.debug(
            "variables could not be coerced: %s",
            "; ".join(error.message for error in coerced),
        )
        return dict(variables or {})
    return coerced


def _directive_condition(
    directive: GraphQLDirective, node: Node, variables: Dict[str, Any]
):
    try:
        values = get_directive_values(directive, node, variables)
    except GraphQLError as exc:
        # invalid variables are reported by the other validation rules
        logger.debug("ignoring @%s: %s", directive.name, exc.message)
        return None
    if values is None:
        return None
    return values.get("if")


def should_skip_node(node: Node, variables: Dict[str, Any]) -> bool:
    """True if @skip(if: true) or @include(if: false) removes the node."""
    if _directive_condition(GraphQLSkipDirective, node, variables) is True:
        return True
    if _directive_condition(GraphQLIncludeDirective, node, variables) is False:
        return True
    return False


def calculate_field_complexity(
    node: FieldNode,
    parent_type,
    schema: GraphQLSchema,
    get_fragment: Callable[[str], Optional[FragmentDefinitionNode]],
    estimators: Iterable[Estimator],
    variables: Dict[str, Any],
    node_count: int,
    _visited_fragments: Set[str],
) -> Tuple[Number, int]:
    # should not happen for queries valid against the schema
    if parent_type is None or not is_composite_type(parent_type):
        return 1, node_count
    # unions have no fields
    field = getattr(parent_type, "fields", {}).get(node.name.value)
    if field is None:
        return 1, node_count

    try:
        args = get_argument_values(field, node, variables)
    except GraphQLError as exc:
        logger.debug(
            "arguments of %s could not be coerced: %s",
            node.name.value,
            exc.message,
        )
        args = {}

    child_complexity = 0
    if node.selection_set:
        child_complexity, node_count = calculate_complexity(
            node.selection_set,
            get_named_type(field.type),
            schema=schema,
            get_fragment=get_fragment,
            estimators=estimators,
            variables=variables,
            node_count=node_count,
            _visited_fragments=_visited_fragments,
        )

    complexity = run_estimators(
        estimators,
        args=args,
        child_complexity=child_complexity,
        field=field,
        node=node,
        type=parent_type,
    )
    return complexity, node_count


def calculate_complexity(
    selection_set: SelectionSetNode,
    parent_type,
    schema: GraphQLSchema,
    get_fragment: Callable[[str], Optional[FragmentDefinitionNode]],
    estimators: Iterable[Estimator],
    variables: Optional[Dict[str, Any]] = None,
    node_count: int = 0,
    _visited_fragments: Optional[Set[str]] = None,
) -> Tuple[Number, int]:
    """
    Walk a selection set and return (complexity, node_count).

    Every selection increments the node count, also the ones removed by
    @skip/@include. `_visited_fragments` holds the fragments on the current
    expansion path, so a fragment may be used in sibling branches but a
    fragment including itself is not expanded again.
    """
    if variables is None:
        variables = {}
    if _visited_fragments is None:
        _visited_fragments = set()
    complexity = 0
    for selection in selection_set.selections:
        node_count += 1
        if should_skip_node(selection, variables):
            continue

        if isinstance(selection, FieldNode):
            field_complexity, node_count = calculate_field_complexity(
                selection,
                parent_type,
                schema=schema,
                get_fragment=get_fragment,
                estimators=estimators,
                variables=variables,
                node_count=node_count,
                _visited_fragments=_visited_fragments,
            )
            complexity += field_complexity
        elif isinstance(selection, InlineFragmentNode):
            if selection.type_condition:
                fragment_type = schema.get_type(
                    selection.type_condition.name.value
                )
            else:
                fragment_type = parent_type
            fragment_complexity, node_count = calculate_complexity(
                selection.selection_set,
                fragment_type,
                schema=schema,
                get_fragment=get_fragment,
                estimators=estimators,
                variables=variables,
                node_count=node_count,
                _visited_fragments=_visited_fragments,
            )
            complexity += fragment_complexity
        elif isinstance(selection, FragmentSpreadNode):
            fragment_name = selection.name.value
            # cycles are rejected by NoFragmentCyclesRule, just don't hang
            if fragment_name in _visited_fragments:
                continue
            fragment = get_fragment(fragment_name)
            if fragment is None:
                continue
            _visited_fragments.add(fragment_name)
            try:
                fragment_complexity, node_count = calculate_complexity(
                    fragment.selection_set,
                    schema.get_type(fragment.type_condition.name.value),
                    schema=schema,
                    get_fragment=get_fragment,
                    estimators=estimators,
                    variables=variables,
                    node_count=node_count,
                    _visited_fragments=_visited_fragments,
                )
            finally:
                _visited_fragments.discard(fragment_name)
            complexity += fragment_complexity
    return complexity, node_count


class QueryComplexityValidationRule(ValidationRule):
    """
    Validation rule rejecting too complex queries

    Unconfigured, the estimators and limits are taken from the schema
    (see SchemaMixin) or the defaults. Use
    create_query_complexity_validator for a configured rule.
    """

    estimators: Optional[List[Estimator]] = None
    maximum_complexity: Optional[Number] = None
    maximum_node_count: Optional[int] = None
    schema: Optional[GraphQLSchema] = None
    variables: Optional[Dict[str, Any]] = None
    on_complete: Optional[Callable[[Number], None]] = None

    def __init__(self, context: ValidationContext):
        super().__init__(context)
        schema = self.context.schema
        if self.estimators is None:
            self.estimators = getattr(
                schema, "get_complexity_estimators", default_estimators
            )()
        if self.maximum_complexity is None:
            self.maximum_complexity = getattr(
                schema,
                "get_complexity_maximum",
                lambda: DEFAULT_MAXIMUM_COMPLEXITY,
            )()
        if self.maximum_node_count is None:
            self.maximum_node_count = getattr(
                schema,
                "get_complexity_maximum_node_count",
                lambda: DEFAULT_MAXIMUM_NODE_COUNT,
            )()
        check_configuration(
            self.estimators, self.maximum_complexity, self.maximum_node_count
        )
        if self.variables is None:
            self.variables = {}
        # reset per document, the rule is instantiated per validation
        self.complexity = 0
        self.has_reported_error = False

    def enter_operation_definition(
        self, node: OperationDefinitionNode, *_args
    ):
        schema = self.schema or self.context.schema
        root_type = {
            OperationType.QUERY: schema.query_type,
            OperationType.MUTATION: schema.mutation_type,
            OperationType.SUBSCRIPTION: schema.subscription_type,
        }.get(node.operation)
        if root_type is None:
            return self.SKIP

        complexity, node_count = calculate_complexity(
            node.selection_set,
            root_type,
            schema=schema,
            get_fragment=self.context.get_fragment,
            estimators=self.estimators,
            variables=coerce_variables(schema, node, self.variables),
        )
        logger.debug(
            "operation %s: complexity %s, %s nodes",
            node.name.value if node.name else "<anonymous>",
            complexity,
            node_count,
        )
        if complexity > self.complexity:
            self.complexity = complexity

        if node_count > self.maximum_node_count:
            self.report_once(
                NodeLimitReached(
                    "Query exceeds maximum node limit of "
                    f"{self.maximum_node_count}. "
                    f"This query has {node_count} nodes.",
                    node,
                    extensions={
                        "code": QUERY_TOO_COMPLEX,
                        "maximumNodeCount": self.maximum_node_count,
                        "nodeCount": node_count,
                    },
                )
            )
        elif complexity > self.maximum_complexity:
            self.report_once(
                ComplexityLimitReached(
                    "Query exceeds maximum complexity of "
                    f"{self.maximum_complexity}. "
                    f"Actual complexity is {complexity}.",
                    node,
                    extensions={
                        "code": QUERY_TOO_COMPLEX,
                        "complexity": complexity,
                        "maximumComplexity": self.maximum_complexity,
                    },
                )
            )
        # the operation is already completely traversed
        return self.SKIP

    def leave_document(self, *_args):
        if self.on_complete is not None and not self.has_reported_error:
            self.on_complete(self.complexity)

    def report_once(self, error: GraphQLError):
        if self.has_reported_error:
            return
        self.has_reported_error = True
        self.report_error(error)


def create_query_complexity_validator(
    *,
    estimators: Iterable[Estimator],
    maximum_complexity: Number,
    maximum_node_count: int = DEFAULT_MAXIMUM_NODE_COUNT,
    schema: Optional[GraphQLSchema] = None,
    variables: Optional[Dict[str, Any]] = None,
    on_complete: Optional[Callable[[Number], None]] = None,
):
    """
    Create a validation rule which limits the query complexity

    Example:

    >>> from graphql import specified_rules, validate
    >>> rule = create_query_complexity_validator(
    ...     estimators=[simple_estimator()],
    ...     maximum_complexity=1000,
    ...     variables=variables,
    ...     on_complete=lambda complexity: print(complexity),
    ... )
    >>> errors = validate(schema, document_ast, [*specified_rules, rule])

    Arguments:

    `estimators`
        estimators, tried in order until one returns a number
    `maximum_complexity`
        queries with a higher complexity are rejected
    `maximum_node_count`
        queries visiting more selection nodes are rejected
    `schema`
        schema used instead of the schema of the validation
    `variables`
        variables used for coercing arguments and directives
    `on_complete`
        called with the complexity if the document passed
    """
    estimators = list(estimators or ())
    check_configuration(estimators, maximum_complexity, maximum_node_count)
    _locals = locals()

    class CustomQueryComplexityValidationRule(QueryComplexityValidationRule):
        estimators = _locals["estimators"]
        maximum_complexity = _locals["maximum_complexity"]
        maximum_node_count = _locals["maximum_node_count"]
        schema = _locals["schema"]
        variables = _locals["variables"]
        # prevent binding as method
        on_complete = (
            staticmethod(_locals["on_complete"])
            if _locals["on_complete"] is not None
            else None
        )

    return CustomQueryComplexityValidationRule


def get_complexity(
    query: Union[str, DocumentNode],
    schema: GraphQLSchema,
    estimators: Iterable[Estimator],
    variables: Optional[Dict[str, Any]] = None,
    maximum_node_count: int = DEFAULT_MAXIMUM_NODE_COUNT,
) -> Number:
    """
    Calculate the complexity of a query outside of an execution

    The query is validated with the specified rules of graphql-core;
    QueryComplexityValidationError is raised if there are any errors.
    """
    if isinstance(query, str):
        document_ast = parse(query)
    else:
        document_ast = query
    calculated = []
    complexity_rule = create_query_complexity_validator(
        estimators=estimators,
        # only calculate
        maximum_complexity=sys.float_info.max,
        maximum_node_count=maximum_node_count,
        schema=schema,
        variables=variables,
        on_complete=calculated.append,
    )
    errors = validate(
        schema, document_ast, [*specified_rules, complexity_rule]
    )
    if errors:
        raise QueryComplexityValidationError(errors)
    return calculated[-1] if calculated else 0


def _decorate_complexity_helper(superself, args, kwargs):
    check_complexity = kwargs.pop("check_complexity", True)
    if not check_complexity:
        return []
    if "query" in kwargs:
        query = kwargs["query"]
    elif "source" in kwargs:
        query = kwargs["source"]
    elif args:
        query = args[0]
    else:
        return []
    if not query:
        return []
    if isinstance(query, DocumentNode):
        document_ast = query
    else:
        try:
            document_ast = parse(query)
        except GraphQLError as error:
            return [error]
    if hasattr(superself, "graphql_schema"):
        schema = getattr(superself, "graphql_schema")
    elif hasattr(superself, "_schema"):
        schema = getattr(superself, "_schema")
    else:
        schema = superself
    complexity_rule = create_query_complexity_validator(
        estimators=superself.get_complexity_estimators(),
        maximum_complexity=superself.get_complexity_maximum(),
        maximum_node_count=superself.get_complexity_maximum_node_count(),
        # graphene also accepts the variables keyword
        variables=kwargs.get("variable_values", kwargs.get("variables")),
    )
    return validate(schema, document_ast, [complexity_rule])


def decorate_complexity(fn):
    if getattr(fn, "_complexity_checked", False):
        return fn

    @wraps(fn)
    def wrapper(superself, *args, **kwargs):
        validation_errors = _decorate_complexity_helper(superself, args, kwargs)
        if validation_errors:
            return ExecutionResult(data=None, errors=validation_errors)
        return fn(superself, *args, **kwargs)

    wrapper._complexity_checked = True
    return wrapper


def decorate_complexity_async(fn):
    if getattr(fn, "_complexity_checked", False):
        return fn

    @wraps(fn)
    async def wrapper(superself, *args, **kwargs):
        validation_errors = _decorate_complexity_helper(superself, args, kwargs)
        if validation_errors:
            return ExecutionResult(data=None, errors=validation_errors)
        return await fn(superself, *args, **kwargs)

    wrapper._complexity_checked = True
    return wrapper


class SchemaMixin:
    """
    Checks the complexity of queries before executing them

    Works with graphene and strawberry schemas (execute methods are
    wrapped) and with plain graphql-core schemas, where
    QueryComplexityValidationRule reads the getters.
    """

    # MISSING: use the defaults
    complexity_estimators = MISSING
    complexity_maximum = MISSING
    complexity_maximum_node_count = MISSING

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if hasattr(cls, "execute_sync"):
            cls.execute_sync = decorate_complexity(cls.execute_sync)
            if hasattr(cls, "execute"):
                cls.execute = decorate_complexity_async(cls.execute)
        else:
            if hasattr(cls, "execute"):
                cls.execute = decorate_complexity(cls.execute)
            if hasattr(cls, "execute_async"):
                cls.execute_async = decorate_complexity_async(
                    cls.execute_async
                )
        if hasattr(cls, "subscribe"):
            cls.subscribe = decorate_complexity_async(cls.subscribe)

    def get_complexity_estimators(self):
        if self.complexity_estimators is MISSING:
            return default_estimators()
        return list(self.complexity_estimators)

    def get_complexity_maximum(self):
        if self.complexity_maximum is MISSING:
            return DEFAULT_MAXIMUM_COMPLEXITY
        return self.complexity_maximum

    def get_complexity_maximum_node_count(self):
        if self.complexity_maximum_node_count is MISSING:
            return DEFAULT_MAXIMUM_NODE_COUNT
        return self.complexity_maximum_node_count
