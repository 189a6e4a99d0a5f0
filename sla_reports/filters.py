"""
SLA Report Object Filter
Author: CloudOps-SRE-Toolkit
Description: Parse and validate query-string filters against a column safelist
"""

import re
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from dataclasses import dataclass
from urllib.parse import unquote

from .exceptions import InvalidFilterExpression

logger = logging.getLogger(__name__)

MATCH_ALL = '*'
OPERATORS = ['!=', '<=', '>=', '=', '<', '>']
COLUMN_CHARS = re.compile(r'[A-Za-z0-9_.%-]+')
VALUE_CHARS = re.compile(r'[^&|()]*')


class FilterParseError(ValueError):
    """Raised for syntactically invalid filter strings"""


@dataclass(frozen=True)
class ColumnRule:
    """Allow-list entry: an exact column name or a column pattern"""
    kind: str  # 'exact' or 'pattern'
    label: str
    value: Optional[str] = None
    match: Optional[Callable[[str], bool]] = None

    @classmethod
    def exact(cls, name: str) -> 'ColumnRule':
        return cls(kind='exact', label=name, value=name)

    @classmethod
    def pattern(cls, label: str, match: Callable[[str], bool]) -> 'ColumnRule':
        return cls(kind='pattern', label=label, match=match)

    def accepts(self, column: str) -> bool:
        if self.kind == 'exact':
            return column == self.value
        return bool(self.match(column))


CUSTOMVAR_RULE = ColumnRule.pattern(
    '_(host|service)_<customvar-name>',
    lambda column: re.match(r'^_(?:host|service)_', column, re.IGNORECASE) is not None
)

HOST_COLUMNS = [
    ColumnRule.exact('instance_name'),
    ColumnRule.exact('host_name'),
    ColumnRule.exact('hostgroup_name'),
    CUSTOMVAR_RULE,
]

SERVICE_COLUMNS = [
    ColumnRule.exact('instance_name'),
    ColumnRule.exact('host_name'),
    ColumnRule.exact('hostgroup_name'),
    ColumnRule.exact('service_description'),
    ColumnRule.exact('servicegroup_name'),
    CUSTOMVAR_RULE,
]


def _lookup(attributes: Dict[str, Any], column: str) -> Any:
    if column in attributes:
        return attributes[column]
    return attributes.get(column.lower())


def _as_number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class FilterCondition:
    """A single ``column op value`` comparison"""

    def __init__(self, column: str, operator: str, value: str):
        self.column = column
        self.operator = operator
        self.value = value

    def columns(self) -> List[str]:
        return [self.column]

    def _equals(self, candidate: Any) -> bool:
        expected = self.value.lower()
        actual = str(candidate).lower()
        if '*' in expected:
            pattern = '.*'.join(re.escape(part) for part in expected.split('*'))
            return re.fullmatch(pattern, actual, re.DOTALL) is not None
        return actual == expected

    def _compare(self, candidate: Any) -> bool:
        left, right = _as_number(candidate), _as_number(self.value)
        if left is None or right is None:
            left, right = str(candidate), self.value

        if self.operator == '<':
            return left < right
        if self.operator == '<=':
            return left <= right
        if self.operator == '>':
            return left > right
        return left >= right

    def matches(self, attributes: Dict[str, Any]) -> bool:
        actual = _lookup(attributes, self.column)
        if actual is None:
            return False

        candidates = actual if isinstance(actual, (list, tuple, set)) else [actual]

        if self.operator == '=':
            return any(self._equals(c) for c in candidates)
        if self.operator == '!=':
            return not any(self._equals(c) for c in candidates)
        return any(self._compare(c) for c in candidates)


class FilterChain:
    """Conjunction (&) or disjunction (|) of filters"""

    def __init__(self, operator: str, children: List[Any]):
        self.operator = operator
        self.children = children

    def columns(self) -> List[str]:
        return [column for child in self.children for column in child.columns()]

    def matches(self, attributes: Dict[str, Any]) -> bool:
        if self.operator == '&':
            return all(child.matches(attributes) for child in self.children)
        return any(child.matches(attributes) for child in self.children)


class FilterNot:
    def __init__(self, child: Any):
        self.child = child

    def columns(self) -> List[str]:
        return self.child.columns()

    def matches(self, attributes: Dict[str, Any]) -> bool:
        return not self.child.matches(attributes)


class FilterMatchAll:
    def columns(self) -> List[str]:
        return []

    def matches(self, attributes: Dict[str, Any]) -> bool:
        return True


class _QueryStringParser:
    """Recursive descent parser for Icinga style query-string filters"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self):
        node = self._parse_or()
        if self.pos != len(self.text):
            raise FilterParseError(f"Unexpected '{self.text[self.pos]}' at position {self.pos}")
        return node

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _parse_or(self):
        children = [self._parse_and()]
        while self._peek() == '|':
            self.pos += 1
            children.append(self._parse_and())
        return children[0] if len(children) == 1 else FilterChain('|', children)

    def _parse_and(self):
        children = [self._parse_unary()]
        while self._peek() == '&':
            self.pos += 1
            children.append(self._parse_unary())
        return children[0] if len(children) == 1 else FilterChain('&', children)

    def _parse_unary(self):
        char = self._peek()
        if char == '!':
            self.pos += 1
            return FilterNot(self._parse_unary())
        if char == '(':
            self.pos += 1
            node = self._parse_or()
            if self._peek() != ')':
                raise FilterParseError(f"Missing closing parenthesis at position {self.pos}")
            self.pos += 1
            return node
        return self._parse_condition()

    def _parse_condition(self) -> FilterCondition:
        match = COLUMN_CHARS.match(self.text, self.pos)
        if not match:
            raise FilterParseError(f"Expected a column name at position {self.pos}")
        column = unquote(match.group())
        self.pos = match.end()

        operator = next((op for op in OPERATORS if self.text.startswith(op, self.pos)), None)
        if operator is None:
            raise FilterParseError(f"Expected an operator after column '{column}'")
        self.pos += len(operator)

        match = VALUE_CHARS.match(self.text, self.pos)
        self.pos = match.end()
        return FilterCondition(column, operator, unquote(match.group()))


class ValidatedFilter:
    """A parsed filter whose columns have all been checked against the safelist"""

    def __init__(self, expression: str, root: Any):
        self.expression = expression
        self.root = root

    @property
    def is_match_all(self) -> bool:
        return isinstance(self.root, FilterMatchAll)

    def matches(self, attributes: Dict[str, Any]) -> bool:
        return self.root.matches(attributes)

    def apply(self, objects: Iterable[Any]) -> List[Any]:
        """Keep the objects whose attributes match, preserving their order"""
        return [obj for obj in objects if self.matches(obj.attributes)]

    def __repr__(self) -> str:
        return f"ValidatedFilter({self.expression!r})"


def validate(expression: Optional[str], allowed_columns: Sequence[ColumnRule]) -> ValidatedFilter:
    """Parse a filter expression and check every referenced column against the allow-list"""
    if expression is None or expression.strip() in ('', MATCH_ALL):
        return ValidatedFilter(MATCH_ALL, FilterMatchAll())

    labels = [rule.label for rule in allowed_columns]

    try:
        root = _QueryStringParser(expression.strip()).parse()
        for column in root.columns():
            if not any(rule.accepts(column) for rule in allowed_columns):
                raise FilterParseError(f"Column '{column}' is not allowed")
    except FilterParseError as e:
        logger.warning(f"Rejected filter {expression}: {str(e)}")
        raise InvalidFilterExpression(expression, labels) from e

    return ValidatedFilter(expression, root)
