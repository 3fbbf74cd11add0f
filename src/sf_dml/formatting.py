"""SOQL literal quoting, adapted from simple-salesforce's format module"""

from datetime import date, datetime, timezone
import string
from typing import Any

_SOQL_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "'": "\\'",
        '"': '\\"',
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
        "\b": "\\b",
        "\f": "\\f",
    }
)

_LIKE_ESCAPES = str.maketrans({"%": "\\%", "_": "\\_"})


def quote_soql_value(value: Any) -> str:
    """Format a python value as a SOQL literal"""
    if isinstance(value, str):
        return "'" + value.translate(_SOQL_ESCAPES) + "'"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if value is None:
        return "NULL"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return "(" + ",".join(quote_soql_value(item) for item in value) + ")"
    raise ValueError(f"Cannot format value of type {type(value).__name__} for SOQL")


class SoqlFormatter(string.Formatter):
    """
    str.format variant that quotes every replacement field as a SOQL literal.

    Format specs:
    * ``literal``: insert the value unquoted
    * ``like``: escape the value for use inside a quoted LIKE pattern
    """

    def format_field(self, value: Any, format_spec: str) -> str:
        if format_spec == "literal":
            return str(value)
        if format_spec == "like":
            return quote_soql_value(str(value))[1:-1].translate(_LIKE_ESCAPES)
        return quote_soql_value(value)


def format_soql(query: str, *args: Any, **kwargs: Any) -> str:
    return SoqlFormatter().vformat(query, args, kwargs)

