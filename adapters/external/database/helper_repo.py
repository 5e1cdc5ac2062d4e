from typing import Any

MIN_INT64 = -(2**63)
MAX_INT64 = 2**63 - 1


def sanitize_for_mongo(value: Any) -> Any:
    """
    Recursively sanitize values so they are acceptable by MongoDB/BSON.

    - ints outside int64 (token amounts, MAX_UINT256 allowances) become decimal strings
    - dicts, lists and tuples are handled recursively
    """
    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        if MIN_INT64 <= value <= MAX_INT64:
            return value
        return str(value)

    if isinstance(value, dict):
        return {k: sanitize_for_mongo(v) for k, v in value.items()}

    if isinstance(value, list):
        return [sanitize_for_mongo(v) for v in value]

    if isinstance(value, tuple):
        return [sanitize_for_mongo(v) for v in value]

    return value
