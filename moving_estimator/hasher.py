"""
Audit hashing — canonical JSON + SHA-256.

The canonical form is fixed so anyone holding the input (or result) can
recompute the hash outside this engine:

    - keys sorted, separators "," and ":" with no whitespace, UTF-8
    - floats with an integral value written as integers (3000.0 -> 3000)
    - other floats in shortest round-trip form (repr)
    - dates and datetimes as ISO-8601 strings, enums as their value
    - NaN and Infinity are rejected
"""

import hashlib
import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

from .schemas import EstimateInput, Calculations


def _canonicalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """Deterministic JSON text for hashing. Raises ValueError on NaN/Infinity."""
    return json.dumps(
        _canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def content_hash(value: Any) -> str:
    """64-char hex SHA-256 of the canonical JSON form."""
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def input_hash(estimate_input: Union[EstimateInput, dict]) -> str:
    """
    Hash of the input exactly as received (no rounding, no defaults).

    A raw dict is hashed as given, so omitted fields stay omitted. A parsed
    EstimateInput is hashed as its camelCase dump.
    """
    if isinstance(estimate_input, EstimateInput):
        return content_hash(estimate_input.model_dump(by_alias=True))
    return content_hash(estimate_input)


def result_hash(calculations: Calculations, rules_version: str) -> str:
    payload = calculations.model_dump(by_alias=True)
    payload["rulesVersion"] = rules_version
    return content_hash(payload)
