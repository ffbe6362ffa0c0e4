"""
Adapters for set-valued columns stored as JSON text.

Scope grants, tags, auth methods and recipe contents are persisted as JSON
arrays in TEXT columns. Reads must never fail because of a partially written
or hand-edited value, so anything that is not a JSON array of strings loads as
empty.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)


def dump_string_set(values: Iterable[str] | None) -> str:
    return json.dumps(sorted(set(values or [])))


def dump_string_list(values: Iterable[str] | None) -> str:
    return json.dumps(list(values or []))


def load_string_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parsed = raw
    else:
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding malformed JSON list column value: {raw!r}")
            return []
    if not isinstance(parsed, list):
        logger.warning(f"Discarding non-list JSON column value: {raw!r}")
        return []
    return [item for item in parsed if isinstance(item, str)]


def load_string_set(raw: Any) -> frozenset[str]:
    return frozenset(load_string_list(raw))
