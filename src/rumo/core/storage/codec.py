"""JSON encoding of persisted blobs."""

import json
from typing import Any

from ..exceptions import PersistenceCorruptError


def encode_blob(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, sort_keys=False)


def decode_blob(raw: str) -> Any:
    """Parse a stored blob.

    Raises:
        PersistenceCorruptError: If *raw* is not valid JSON.
    """
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise PersistenceCorruptError(f"Stored blob is not valid JSON: {e}") from e
