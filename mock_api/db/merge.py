"""
Deep merge used for PATCH requests.
"""

from typing import Any, Iterable

READ_ONLY_FIELDS = ("id", "createdAt")


def deep_merge(existing: Any, partial: Any, read_only_fields: Iterable[str] = READ_ONLY_FIELDS) -> Any:
    """
    Merge a partial update into an existing document.

    - read-only keys are never overwritten, at any depth
    - an explicit None clears the value
    - keys absent from `partial` are left untouched
    - lists replace the existing value wholesale
    - dicts merge recursively; anything else overwrites

    Neither argument is mutated.

    Args:
        existing: The stored document
        partial: The patch body
        read_only_fields: Keys the patch may not change

    Returns:
        The merged document
    """
    if not isinstance(existing, dict):
        return partial
    if not isinstance(partial, dict):
        return existing

    read_only = frozenset(read_only_fields)
    result = dict(existing)

    for key, value in partial.items():
        if key in read_only:
            continue

        if value is None:
            result[key] = None
        elif isinstance(value, list):
            result[key] = list(value)
        elif isinstance(value, dict):
            current = result.get(key)
            result[key] = deep_merge(current if isinstance(current, dict) else {}, value, read_only)
        else:
            result[key] = value

    return result
