"""
Expression Builders

Pure helpers that produce DynamoDB expression strings plus their placeholder
maps. Nothing here touches the network.

- build_partition_query / add_sort_key_condition: KeyConditionExpression for Query
- build_update_expression: SET-only UpdateExpression for partial updates

Attribute names always go through placeholders (``#partitionKey``, ``#0``...) so
reserved words such as ``name`` or ``duration`` never collide with the grammar.
"""

from typing import Any, Dict, Iterable, Mapping, NamedTuple, Optional

PARTITION_KEY_NAME = '#partitionKey'
PARTITION_KEY_VALUE = ':partitionValue'
SORT_KEY_NAME = '#sortKey'
SORT_KEY_VALUE = ':sortValue'
SORT_KEY_VALUE2 = ':sortValue2'

INFIX_OPERATORS = ('=', '<', '<=', '>', '>=')
SORT_KEY_OPERATORS = INFIX_OPERATORS + ('begins_with', 'between')


class KeyCondition:
    """
    Key condition for a single Query call.

    Holds the partition equality, at most one sort key condition and the scan
    options. Built with build_partition_query() and extended with
    add_sort_key_condition(); rendered with to_query_kwargs().
    """

    def __init__(
        self,
        partition_key: str,
        partition_value: Any,
        index_name: Optional[str] = None,
        key_only: bool = False,
        limit: Optional[int] = None,
        descending: bool = False,
        consistent_read: bool = False
    ):
        self.partition_key = partition_key
        self.partition_value = partition_value
        self.index_name = index_name
        self.key_only = key_only
        self.limit = limit
        self.descending = descending
        self.consistent_read = consistent_read

        self.sort_key: Optional[str] = None
        self.sort_operator: Optional[str] = None
        self.sort_value: Any = None
        self.sort_value2: Any = None

    @property
    def has_sort_condition(self) -> bool:
        return self.sort_key is not None

    @property
    def expression(self) -> str:
        """Rendered KeyConditionExpression."""
        expression = f"{PARTITION_KEY_NAME} = {PARTITION_KEY_VALUE}"
        if not self.has_sort_condition:
            return expression

        if self.sort_operator == 'begins_with':
            # Function-call form, the one operator that is not infix
            sort_expression = f"begins_with({SORT_KEY_NAME}, {SORT_KEY_VALUE})"
        elif self.sort_operator == 'between':
            sort_expression = f"{SORT_KEY_NAME} BETWEEN {SORT_KEY_VALUE} AND {SORT_KEY_VALUE2}"
        else:
            sort_expression = f"{SORT_KEY_NAME} {self.sort_operator} {SORT_KEY_VALUE}"

        return f"{expression} and {sort_expression}"

    @property
    def attribute_names(self) -> Dict[str, str]:
        names = {PARTITION_KEY_NAME: self.partition_key}
        if self.has_sort_condition:
            names[SORT_KEY_NAME] = self.sort_key
        return names

    @property
    def attribute_values(self) -> Dict[str, Any]:
        values = {PARTITION_KEY_VALUE: self.partition_value}
        if self.has_sort_condition:
            values[SORT_KEY_VALUE] = self.sort_value
            if self.sort_operator == 'between':
                values[SORT_KEY_VALUE2] = self.sort_value2
        return values

    def to_query_kwargs(self) -> Dict[str, Any]:
        """
        Render as Query parameters (without TableName and ExclusiveStartKey).

        Attribute values are plain Python values; the table client marshals them.
        """
        query_kwargs = {
            'KeyConditionExpression': self.expression,
            'ExpressionAttributeNames': self.attribute_names,
            'ExpressionAttributeValues': self.attribute_values,
            'ScanIndexForward': not self.descending,
        }

        if self.index_name:
            query_kwargs['IndexName'] = self.index_name
        if self.limit:
            query_kwargs['Limit'] = self.limit
        if self.key_only:
            query_kwargs['ProjectionExpression'] = PARTITION_KEY_NAME
        if self.consistent_read:
            query_kwargs['ConsistentRead'] = True

        return query_kwargs

    def __repr__(self) -> str:
        return (
            f"KeyCondition({self.expression!r}, names={self.attribute_names!r}, "
            f"values={self.attribute_values!r}, index={self.index_name!r}, "
            f"limit={self.limit!r}, descending={self.descending!r})"
        )


def build_partition_query(
    partition_key_name: str,
    partition_value: Any,
    index_name: Optional[str] = None,
    key_only: bool = False,
    limit: Optional[int] = None,
    descending: bool = False,
    consistent_read: bool = False
) -> KeyCondition:
    """Build a ``#partitionKey = :partitionValue`` key condition.

    Args:
        partition_key_name: Partition key attribute name (of the table or of index_name)
        partition_value: Value the partition key must equal
        index_name: Secondary index to query instead of the base table
        key_only: Project only the partition key attribute
        limit: Maximum number of items to evaluate
        descending: Scan the sort key in descending order
        consistent_read: Strongly consistent read (base table only)

    Returns:
        KeyCondition ready for add_sort_key_condition() or TableClient.query()

    Raises:
        ValueError: If a required argument is missing
    """
    if not partition_key_name:
        raise ValueError("partition_key_name is required")
    if partition_value is None:
        raise ValueError("partition_value is required")
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")

    return KeyCondition(
        partition_key=partition_key_name,
        partition_value=partition_value,
        index_name=index_name,
        key_only=key_only,
        limit=limit,
        descending=descending,
        consistent_read=consistent_read
    )


def add_sort_key_condition(
    condition: KeyCondition,
    sort_key_name: str,
    sort_value: Any,
    operator: str = '=',
    sort_value2: Any = None
) -> KeyCondition:
    """Append `` and <sort key condition>`` to an existing partition condition.

    Args:
        condition: Condition returned by build_partition_query()
        sort_key_name: Sort key attribute name
        sort_value: Comparison value (or lower bound for 'between')
        operator: One of =, <, <=, >, >=, begins_with, between
        sort_value2: Upper bound, required for 'between'

    Returns:
        The same condition, extended

    Raises:
        ValueError: If no partition condition exists, a sort condition is already
            present, or the operator is unsupported

    Examples:
        >>> condition = build_partition_query('account_id', 'u1')
        >>> add_sort_key_condition(condition, 'follow_timestamp', 1528342014, '>').expression
        '#partitionKey = :partitionValue and #sortKey > :sortValue'
    """
    if not isinstance(condition, KeyCondition):
        raise ValueError("A partition condition must be built before adding a sort key condition")
    if condition.has_sort_condition:
        raise ValueError(f"Key condition already has a sort key condition on '{condition.sort_key}'")
    if not sort_key_name:
        raise ValueError("sort_key_name is required")
    if sort_value is None:
        raise ValueError("sort_value is required")
    if operator not in SORT_KEY_OPERATORS:
        raise ValueError(
            f"Unsupported sort key operator: {operator}. "
            f"Supported values: {', '.join(SORT_KEY_OPERATORS)}"
        )
    if operator == 'between' and sort_value2 is None:
        raise ValueError("'between' condition requires sort_value2 parameter")

    condition.sort_key = sort_key_name
    condition.sort_operator = operator
    condition.sort_value = sort_value
    condition.sort_value2 = sort_value2 if operator == 'between' else None
    return condition


class UpdateExpression(NamedTuple):
    """SET expression with positional name/value placeholders."""

    expression: str
    attribute_names: Dict[str, str]
    attribute_values: Dict[str, Any]

    @property
    def is_empty(self) -> bool:
        return not self.attribute_names

    @property
    def fields(self) -> Dict[str, Any]:
        """Field name to new value, in placeholder order."""
        return {
            name: self.attribute_values[f":{placeholder[1:]}"]
            for placeholder, name in self.attribute_names.items()
        }


def build_update_expression(
    fields: Mapping[str, Any],
    allowed: Optional[Iterable[str]] = None
) -> UpdateExpression:
    """Build a SET update expression from field name to new value.

    Placeholders are positional (``#0``/``:0``, ``#1``/``:1``...) in the
    iteration order of ``fields``. An empty mapping yields an expression with no
    SET clause; callers must treat it as a no-op.

    Args:
        fields: Ordered mapping of attribute name to new value
        allowed: Attribute names that may be updated; others raise

    Returns:
        UpdateExpression

    Raises:
        ValueError: If a field is not in ``allowed``

    Examples:
        >>> build_update_expression({'title': 'Intro', 'notes': 'n'}).expression
        'SET #0 = :0, #1 = :1'
    """
    if allowed is not None:
        allowed = set(allowed)
        unknown = [name for name in fields if name not in allowed]
        if unknown:
            raise ValueError(f"Fields not updatable: {unknown}. Allowed: {sorted(allowed)}")

    set_clauses = []
    attribute_names = {}
    attribute_values = {}

    for position, (name, value) in enumerate(fields.items()):
        attribute_names[f"#{position}"] = name
        attribute_values[f":{position}"] = value
        set_clauses.append(f"#{position} = :{position}")

    expression = "SET " + ", ".join(set_clauses) if set_clauses else ""
    return UpdateExpression(expression, attribute_names, attribute_values)
