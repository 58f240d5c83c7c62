"""Polymorphic JSON values.

Document properties, workflow variables, directory entry fields and context
parameters carry values whose type is only known to the server schema. A
:class:`Field` keeps the JSON text it was decoded from and interprets it on
demand through typed accessors.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import core_schema

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models.timestamp import format_iso8601, parse_iso8601


if TYPE_CHECKING:
    from pydantic import GetCoreSchemaHandler


__all__ = ["Field", "dump_json"]


def _json_default(value: object) -> Any:  # noqa: ANN401
    if isinstance(value, Field):
        return value.value
    if isinstance(value, datetime):
        return format_iso8601(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def dump_json(value: object) -> bytes:
    """Serialize ``value`` as compact UTF-8 JSON, encoding SDK types."""
    return json.dumps(
        value,
        default=_json_default,
        ensure_ascii=False,
        separators=(",", ":"),
    ).encode("utf-8")


class Field:
    """A JSON value whose type is decided when it is read.

    Each ``as_*`` accessor tries one interpretation. A JSON ``null`` reads as
    ``None`` through every accessor; any other mismatch raises
    :class:`NuxeoDecodeError`. Accessors never modify the stored bytes.

    Example:
        ```python
        title = document.properties["dc:title"].as_str()
        created = document.properties["dc:created"].as_datetime()
        document.set_property("dc:subjects", ["art", "music"])
        ```
    """

    __slots__ = ("_raw", "_value")

    def __init__(self, raw: bytes | str) -> None:
        """Wrap raw JSON text.

        Args:
            raw: A JSON document, as bytes or text.

        Raises:
            NuxeoDecodeError: If ``raw`` is not valid JSON.
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        try:
            self._value = json.loads(raw)
        except ValueError as exc:
            msg = f"invalid JSON field value: {exc}"
            raise NuxeoDecodeError(msg) from exc
        self._raw = raw

    @classmethod
    def of(cls, value: object) -> Field:
        """Build a field from a Python value.

        Datetimes are written in the server timestamp layout and pydantic
        models are written with their wire aliases.

        Args:
            value: Any JSON-compatible value, datetime, model or Field.

        Returns:
            The new field.
        """
        if isinstance(value, Field):
            return value
        return cls(dump_json(value))

    @classmethod
    def null(cls) -> Field:
        """Return a field holding JSON ``null``."""
        return cls(b"null")

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    @property
    def raw(self) -> bytes:
        """The JSON bytes backing this field."""
        return self._raw

    @property
    def value(self) -> Any:  # noqa: ANN401
        """The decoded JSON value (dict, list, str, int, float, bool or None)."""
        return self._value

    def is_null(self) -> bool:
        """Return True if the field holds JSON ``null``."""
        return self._value is None

    def to_json(self) -> str:
        """Return the JSON text of this field."""
        return self._raw.decode("utf-8")

    # -------------------------------------------------------------------------
    # Scalar accessors
    # -------------------------------------------------------------------------

    def as_str(self) -> str | None:
        """Interpret the field as a string."""
        return self._scalar(self._value, _is_str, "string")

    def as_int(self) -> int | None:
        """Interpret the field as an integer."""
        return self._scalar(self._value, _is_int, "integer")

    def as_float(self) -> float | None:
        """Interpret the field as a float; integers are widened."""
        value = self._scalar(self._value, _is_number, "number")
        return None if value is None else float(value)

    def as_bool(self) -> bool | None:
        """Interpret the field as a boolean."""
        return self._scalar(self._value, _is_bool, "boolean")

    def as_datetime(self) -> datetime | None:
        """Interpret the field as a server timestamp."""
        text = self._scalar(self._value, _is_str, "timestamp")
        return None if text is None else _parse_timestamp(text)

    # -------------------------------------------------------------------------
    # List accessors
    # -------------------------------------------------------------------------

    def as_str_list(self) -> list[str] | None:
        """Interpret the field as a list of strings."""
        return self._list(_is_str, "string")

    def as_int_list(self) -> list[int] | None:
        """Interpret the field as a list of integers."""
        return self._list(_is_int, "integer")

    def as_float_list(self) -> list[float] | None:
        """Interpret the field as a list of floats."""
        values = self._list(_is_number, "number")
        return None if values is None else [float(v) for v in values]

    def as_bool_list(self) -> list[bool] | None:
        """Interpret the field as a list of booleans."""
        return self._list(_is_bool, "boolean")

    def as_datetime_list(self) -> list[datetime] | None:
        """Interpret the field as a list of server timestamps."""
        values = self._list(_is_str, "timestamp")
        return None if values is None else [_parse_timestamp(v) for v in values]

    # -------------------------------------------------------------------------
    # Structural accessors
    # -------------------------------------------------------------------------

    def as_model[T](self, shape: type[T]) -> T | None:
        """Decode the field into a caller-supplied shape.

        Args:
            shape: A pydantic model, dataclass or any type pydantic accepts.

        Returns:
            The decoded value, or None for JSON ``null``.

        Raises:
            NuxeoDecodeError: If the value does not fit ``shape``.
        """
        if self.is_null():
            return None
        try:
            return TypeAdapter(shape).validate_python(self._value)
        except ValidationError as exc:
            msg = f"field does not match {getattr(shape, '__name__', shape)}"
            raise NuxeoDecodeError(msg) from exc

    def as_model_list[T](self, shape: type[T]) -> list[T] | None:
        """Decode the field into a list of a caller-supplied shape."""
        if self.is_null():
            return None
        try:
            adapter = TypeAdapter(list[shape])  # type: ignore[valid-type]
            return adapter.validate_python(self._value)
        except ValidationError as exc:
            msg = f"field is not a list of {getattr(shape, '__name__', shape)}"
            raise NuxeoDecodeError(msg) from exc

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _scalar(value: Any, check: Any, kind: str) -> Any:  # noqa: ANN401
        if value is None:
            return None
        if not check(value):
            msg = f"field value {value!r} is not a {kind}"
            raise NuxeoDecodeError(msg)
        return value

    def _list(self, check: Any, kind: str) -> list[Any] | None:  # noqa: ANN401
        if self._value is None:
            return None
        if not isinstance(self._value, list):
            msg = f"field value {self._value!r} is not a list"
            raise NuxeoDecodeError(msg)
        for item in self._value:
            if not check(item):
                msg = f"list item {item!r} is not a {kind}"
                raise NuxeoDecodeError(msg)
        return list(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Field):
            return self._value == other._value
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Field({self.to_json()})"

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,  # noqa: ANN401
        handler: GetCoreSchemaHandler,
    ) -> core_schema.CoreSchema:
        """Let pydantic models hold fields decoded from any JSON value."""
        del source_type, handler
        return core_schema.no_info_plain_validator_function(
            cls.of,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda field: field.value,
            ),
        )


def _is_str(value: object) -> bool:
    return isinstance(value, str)


def _is_bool(value: object) -> bool:
    return isinstance(value, bool)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_timestamp(text: str) -> datetime:
    try:
        return parse_iso8601(text)
    except ValueError as exc:
        raise NuxeoDecodeError(str(exc)) from exc
