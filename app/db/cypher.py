"""
Small helpers shared by the Cypher query builders.

Builders return a CypherQuery: the statement text plus its parameter map.
Filter values only ever travel in the parameter map.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class CypherQuery:
    text: str
    params: dict[str, Any] = field(default_factory=dict)


def date_range_conditions(
    variable: str,
    start: datetime | None,
    end: datetime | None,
    *,
    prefix: str = "date",
) -> tuple[list[str], dict[str, Any]]:
    """
    Build inclusive range conditions for a temporal property.

    Returns (conditions, params); conditions reference $<prefix>From and
    $<prefix>To and are meant to be AND-ed into a WHERE clause.
    """
    conditions: list[str] = []
    params: dict[str, Any] = {}

    if start is not None:
        conditions.append(f"{variable} >= ${prefix}From")
        params[f"{prefix}From"] = start
    if end is not None:
        conditions.append(f"{variable} <= ${prefix}To")
        params[f"{prefix}To"] = end

    return conditions, params


def join_conditions(conditions: list[str]) -> str:
    """AND-join conditions into a WHERE body; empty list yields 'true'."""
    if not conditions:
        return "true"
    return " AND ".join(conditions)
