"""
Conversion of Neo4j driver value types to plain Python primitives.

Temporal types become ISO 8601 strings (UTC rendered with a trailing "Z"),
graph entities become property dicts, containers are converted recursively.
"""

from datetime import UTC, date, datetime
from typing import Any

from neo4j.graph import Node, Relationship
from neo4j.time import Date as Neo4jDate
from neo4j.time import DateTime as Neo4jDateTime
from neo4j.time import Duration as Neo4jDuration
from neo4j.time import Time as Neo4jTime


def format_datetime(value: datetime | None) -> str | None:
    """Render a datetime as ISO 8601; naive values are treated as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    rendered = value.astimezone(UTC).isoformat()
    return rendered.replace("+00:00", "Z")


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Inverse of format_datetime for values coming back from the executor."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def normalize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Neo4jDateTime):
        return format_datetime(value.to_native())
    if isinstance(value, Neo4jDate):
        return value.to_native().isoformat()
    if isinstance(value, Neo4jTime):
        return value.to_native().isoformat()
    if isinstance(value, Neo4jDuration):
        return value.iso_format()
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (Node, Relationship)):
        return {key: normalize_value(item) for key, item in value.items()}
    if isinstance(value, dict):
        return {key: normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value
