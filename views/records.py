"""Field access that works for pydantic records and raw camelCase dicts."""

from typing import Any

from pydantic.alias_generators import to_camel


def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` (snake_case) from a model or a dict in either spelling."""
    if record is None:
        return default
    if isinstance(record, dict):
        if name in record:
            return record[name]
        return record.get(to_camel(name), default)
    return getattr(record, name, default)
