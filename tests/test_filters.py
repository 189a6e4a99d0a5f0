from __future__ import annotations

import pytest

from sla_reports.exceptions import InvalidFilterExpression
from sla_reports.filters import (
    HOST_COLUMNS,
    SERVICE_COLUMNS,
    ColumnRule,
    FilterParseError,
    validate,
)
from sla_reports.models import ObjectRef


def test_allowed_column_validates_and_matches() -> None:
    validated = validate("host_name=foo", HOST_COLUMNS)

    assert validated.matches({"host_name": "foo"})
    assert validated.matches({"host_name": "FOO"})
    assert not validated.matches({"host_name": "bar"})
    assert not validated.matches({})


def test_disallowed_column_reports_permitted_columns() -> None:
    with pytest.raises(InvalidFilterExpression) as excinfo:
        validate("bogus_col=1", HOST_COLUMNS)

    assert str(excinfo.value) == (
        "Cannot apply the filter bogus_col=1. You can only use the following columns: "
        "instance_name, host_name, hostgroup_name, _(host|service)_<customvar-name>"
    )
    assert excinfo.value.expression == "bogus_col=1"
    assert isinstance(excinfo.value.__cause__, FilterParseError)


def test_service_columns_only_allowed_for_service_reports() -> None:
    with pytest.raises(InvalidFilterExpression):
        validate("service_description=http", HOST_COLUMNS)

    validated = validate("service_description=http&servicegroup_name=web", SERVICE_COLUMNS)
    assert validated.matches({"service_description": "http", "servicegroup_name": ["web"]})


def test_service_error_lists_all_columns() -> None:
    with pytest.raises(InvalidFilterExpression) as excinfo:
        validate("host_address=10.0.0.1", SERVICE_COLUMNS)

    assert excinfo.value.allowed_columns == [
        "instance_name", "host_name", "hostgroup_name", "service_description",
        "servicegroup_name", "_(host|service)_<customvar-name>",
    ]


@pytest.mark.parametrize("expression", ["*", " * ", "", None])
def test_match_all_always_validates(expression: str | None) -> None:
    validated = validate(expression, [])

    assert validated.is_match_all
    assert validated.matches({"anything": "at all"})


def test_custom_variable_columns_are_case_insensitive() -> None:
    validated = validate("_HOST_os=linux", HOST_COLUMNS)
    assert validated.matches({"_host_os": "Linux"})

    assert validate("_service_team=web", HOST_COLUMNS).matches({"_service_team": "web"})

    with pytest.raises(InvalidFilterExpression):
        validate("_hostos=linux", HOST_COLUMNS)


@pytest.mark.parametrize("expression", [
    "host_name",
    "host_name=foo&(",
    "(host_name=foo",
    "host_name=foo)",
    "=foo",
    "host_name=a||host_name=b",
])
def test_syntax_errors_are_rejected(expression: str) -> None:
    with pytest.raises(InvalidFilterExpression):
        validate(expression, HOST_COLUMNS)


def test_wildcards_and_group_membership() -> None:
    validated = validate("hostgroup_name=lin*", HOST_COLUMNS)

    assert validated.matches({"hostgroup_name": ["web", "linux-servers"]})
    assert not validated.matches({"hostgroup_name": ["windows"]})
    assert not validated.matches({"hostgroup_name": []})


def test_not_equal_requires_no_member_to_match() -> None:
    validated = validate("hostgroup_name!=db", HOST_COLUMNS)

    assert validated.matches({"hostgroup_name": ["linux"]})
    assert not validated.matches({"hostgroup_name": ["linux", "db"]})


def test_boolean_operators_and_precedence() -> None:
    validated = validate("host_name=a|host_name=b&instance_name=x", HOST_COLUMNS)

    assert validated.matches({"host_name": "a", "instance_name": "y"})
    assert validated.matches({"host_name": "b", "instance_name": "x"})
    assert not validated.matches({"host_name": "b", "instance_name": "y"})

    grouped = validate("(host_name=a|host_name=b)&instance_name=x", HOST_COLUMNS)
    assert not grouped.matches({"host_name": "a", "instance_name": "y"})

    negated = validate("!(host_name=a|host_name=b)", HOST_COLUMNS)
    assert negated.matches({"host_name": "c"})
    assert not negated.matches({"host_name": "a"})


def test_ordering_operators_compare_numbers_numerically() -> None:
    validated = validate("_host_priority>=3", HOST_COLUMNS)

    assert validated.matches({"_host_priority": "10"})
    assert validated.matches({"_host_priority": 3})
    assert not validated.matches({"_host_priority": "2"})
    assert validate("_host_tier<b", HOST_COLUMNS).matches({"_host_tier": "a"})


def test_values_are_url_decoded() -> None:
    assert validate("host_name=web%2001", HOST_COLUMNS).matches({"host_name": "web 01"})


def test_apply_keeps_matching_objects_in_order() -> None:
    objects = [
        ObjectRef("3", ("c",), {"host_name": "c", "hostgroup_name": ["linux"]}),
        ObjectRef("1", ("a",), {"host_name": "a", "hostgroup_name": ["windows"]}),
        ObjectRef("2", ("b",), {"host_name": "b", "hostgroup_name": ["linux"]}),
    ]

    selected = validate("hostgroup_name=linux", HOST_COLUMNS).apply(objects)
    assert [obj.object_id for obj in selected] == ["3", "2"]


def test_column_rules_are_tagged() -> None:
    exact = ColumnRule.exact("host_name")
    pattern = ColumnRule.pattern("x_*", lambda column: column.startswith("x_"))

    assert exact.kind == "exact" and exact.accepts("host_name")
    assert not exact.accepts("host_name_2")
    assert pattern.kind == "pattern" and pattern.accepts("x_1")
    assert not pattern.accepts("y_1")
