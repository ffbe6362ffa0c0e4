import re
from typing import Any

_NAMED_PARAM = re.compile(r"(?<!:):(\w+)")


def bind_named(query: str, params: dict[str, Any]) -> tuple[str, list[Any]]:
    """
    Rewrite ``:name`` placeholders into asyncpg's positional ``$n`` form.

    Each distinct name is bound once, so a placeholder may be repeated in the
    query. ``::type`` casts are left alone.
    """
    positions: dict[str, int] = {}
    values: list[Any] = []

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in params:
            raise ValueError(f"Missing parameter: {name}")
        if name not in positions:
            values.append(params[name])
            positions[name] = len(values)
        return f"${positions[name]}"

    return _NAMED_PARAM.sub(_replace, query), values


def build_set_clause(fields: dict[str, Any]) -> str:
    return ", ".join(f"{column} = :{column}" for column in fields)


def escape_like(value: str) -> str:
    """Escape ``%``, ``_`` and ``\\`` for a LIKE pattern using ``ESCAPE '\\'``."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
