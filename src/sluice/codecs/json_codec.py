"""JSON payload codec."""

import json
from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from sluice.exceptions import DeserializationError, SerializationError


class JsonCodec:
    """
    JSON codec implementing PayloadCodec protocol.

    Bodies are compact, key-sorted UTF-8 JSON so encoding is deterministic.
    When bound to a Pydantic model, decode() validates into that model and
    encode() accepts model instances.
    """

    def __init__(self, model: Optional[Type[BaseModel]] = None):
        self.model = model

    def encode(self, value: Any) -> bytes:
        if isinstance(value, BaseModel):
            return value.model_dump_json().encode("utf-8")

        _check_roundtrip(value)
        try:
            return json.dumps(
                value,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            ).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Cannot encode {type(value).__name__}: {exc}") from exc

    def decode(self, body: bytes) -> Any:
        if not body:
            raise DeserializationError("Message body is empty")

        if self.model is not None:
            try:
                return self.model.model_validate_json(body)
            except ValidationError as exc:
                raise DeserializationError(
                    f"Body does not match {self.model.__name__}: {exc.error_count()} error(s)"
                ) from exc

        try:
            return json.loads(body)
        except (TypeError, ValueError) as exc:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise DeserializationError(f"Malformed JSON body: {exc}") from exc


def _check_roundtrip(value: Any) -> None:
    """Reject values that JSON would encode but not decode back unchanged."""
    if isinstance(value, tuple):
        raise SerializationError("Tuples decode as lists; pass a list instead")
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(f"Non-string key {key!r} would decode as a string")
            _check_roundtrip(item)
    elif isinstance(value, list):
        for item in value:
            _check_roundtrip(item)
