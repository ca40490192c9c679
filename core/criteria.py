"""
Criteria compilation.

Turns caller-supplied (column, operator, value) criteria into the remote
record filter:

    {"mode": "AND", "criteria": [{"field": ..., "op": ..., "values": [...]}]}

and the matching human-readable description
("PartNo Contains 'A100' AND Level Equals 'F'").
"""
from dataclasses import dataclass
from typing import Any, Collection, Iterable

from config import DEFAULT_OPERATOR, FILTER_MODE, VALID_OPERATORS, VALUELESS_OPERATORS
from lib.common import is_blank, to_text
from lib.errors import ValidationError
from lib.types import CompiledClause


@dataclass(frozen=True)
class Clause:
    field: str
    op: str
    value: str | None = None

    def to_wire(self) -> CompiledClause:
        if self.value is None:
            return {"field": self.field, "op": self.op}
        return {"field": self.field, "op": self.op, "values": [self.value]}

    def describe(self) -> str:
        if self.value is None:
            return f"{self.field} {self.op}"
        return f"{self.field} {self.op} '{self.value}'"


@dataclass(frozen=True)
class CompiledFilter:
    """An AND of clauses, in input order. Rebuild rather than modify."""
    clauses: tuple[Clause, ...]
    mode: str = FILTER_MODE

    def to_wire(self) -> dict[str, Any]:
        return {"mode": self.mode, "criteria": [c.to_wire() for c in self.clauses]}

    @property
    def description(self) -> str:
        return f" {self.mode} ".join(c.describe() for c in self.clauses)

    def __len__(self) -> int:
        return len(self.clauses)


def invalid_operator(op: Any) -> ValidationError:
    return ValidationError(
        f"invalid operator: {op}; valid operators: {', '.join(VALID_OPERATORS)}",
        {"field": "op", "operator": op, "valid_operators": list(VALID_OPERATORS)},
    )


def compile_criterion(
    criterion: dict[str, Any],
    table_columns: Collection[str] | None = None,
) -> Clause:
    """
    Validate and compile one criterion.

    Args:
        criterion: {columnName, searchValue?, op?}; op defaults to Contains
        table_columns: Known column names; empty/None skips the column check

    Raises:
        ValidationError: empty column, unknown operator, unknown column,
                         or missing value for a value-taking operator
    """
    column = to_text(criterion.get("columnName")).strip()
    if not column:
        raise ValidationError("columnName is required", {"field": "columnName"})

    op = criterion.get("op") or DEFAULT_OPERATOR
    if op not in VALID_OPERATORS:
        raise invalid_operator(op)

    if table_columns and column not in table_columns:
        raise ValidationError(
            f"column not found: {column}",
            {"field": "columnName", "column": column, "available_columns": list(table_columns)},
        )

    if op in VALUELESS_OPERATORS:
        return Clause(field=column, op=op)

    value = criterion.get("searchValue")
    # An explicit empty string counts as missing; numeric 0 does not
    if is_blank(value):
        raise ValidationError(
            f"searchValue is required for operator {op} (column {column})",
            {"field": "searchValue", "column": column, "operator": op},
        )
    return Clause(field=column, op=op, value=to_text(value))


def compile_criteria(
    criteria: Iterable[dict[str, Any]],
    table_columns: Collection[str] | None = None,
    drop_blank_columns: bool = True,
) -> CompiledFilter:
    """
    Compile a criteria list into an AND filter.

    Criteria with a blank columnName are skipped when drop_blank_columns is
    set; any other validation failure aborts the whole compile.

    Raises:
        ValidationError: on the first invalid criterion, or when no clause
                         remains
    """
    clauses: list[Clause] = []
    for crit in criteria:
        if not isinstance(crit, dict):
            raise ValidationError("each criterion must be an object", {"field": "criteria"})
        if drop_blank_columns and not to_text(crit.get("columnName")).strip():
            continue
        clauses.append(compile_criterion(crit, table_columns))

    if not clauses:
        raise ValidationError("no valid search criteria", {"field": "criteria"})
    return CompiledFilter(clauses=tuple(clauses))


def describe_criteria(
    criteria: Iterable[dict[str, Any]],
    table_columns: Collection[str] | None = None,
) -> str:
    """Description string of the filter the criteria compile to."""
    return compile_criteria(criteria, table_columns).description
