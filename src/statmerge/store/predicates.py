"""
Row predicates rendered to parameterized SQL.

A Predicate is an AND of clauses; each clause is an OR of conditions.
That is enough for every filter the merge needs, e.g.::

    Predicate.where("metadata_id", "=", 7).any_of(
        Condition("created", ">", cutoff.typed),
        Condition("created_ts", ">", cutoff.epoch),
    )
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

OPERATORS = frozenset({"=", "!=", ">", ">=", "<", "<="})


@dataclass(frozen=True)
class Condition:
    """``column <operator> value``"""

    column: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise ValueError(f"Unsupported operator: {self.operator}")
        if self.value is None:
            raise ValueError(f"Condition on '{self.column}' cannot compare against NULL")


@dataclass(frozen=True)
class Predicate:
    clauses: tuple[tuple[Condition, ...], ...] = ()

    @classmethod
    def where(cls, column: str, operator: str, value: Any) -> "Predicate":
        return cls(((Condition(column, operator, value),),))

    def and_where(self, column: str, operator: str, value: Any) -> "Predicate":
        return self.any_of(Condition(column, operator, value))

    def any_of(self, *conditions: Condition) -> "Predicate":
        """Add a clause that holds when any of the conditions holds."""
        if not conditions:
            raise ValueError("any_of() requires at least one condition")
        return Predicate(self.clauses + (tuple(conditions),))

    def render(
        self,
        quote: Callable[[str], str],
        placeholder: str,
        adapt: Callable[[Any], Any] = lambda value: value,
    ) -> tuple[str, list[Any]]:
        """
        Render the predicate as a WHERE clause body

        Args:
            quote: Identifier quoting function
            placeholder: DB-API placeholder for the dialect
            adapt: Converts a Python value to a driver parameter

        Returns:
            Tuple of (sql, params); sql is empty when there are no clauses
        """
        parts = []
        params: list[Any] = []

        for clause in self.clauses:
            terms = []
            for condition in clause:
                terms.append(f"{quote(condition.column)} {condition.operator} {placeholder}")
                params.append(adapt(condition.value))

            if len(terms) == 1:
                parts.append(terms[0])
            else:
                parts.append(f"({' OR '.join(terms)})")

        return " AND ".join(parts), params
