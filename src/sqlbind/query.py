"""Typed bind values as protobuf messages.

The schema follows the ``Value`` / ``BindVariable`` messages of Vitess' ``query.proto``: a value is a wire type tag
plus the value's textual bytes, and a bind variable is either a single value or a ``TUPLE`` of values (used for
``IN ::name`` list placeholders).  Type tag numbers match Vitess so bind maps produced here can be handed to tooling
that speaks that protocol.

The descriptors are assembled at import time from a ``FileDescriptorProto`` in a private descriptor pool, so no
generated ``_pb2`` module is needed::

    >>> from sqlbind.query import Type, int64_bind_variable, to_python
    >>> bv = int64_bind_variable(42)
    >>> bv.type == Type.INT64, bv.value
    (True, b'42')
    >>> to_python(bv)
    42
"""

from __future__ import annotations

import enum
import math
import re
from typing import TYPE_CHECKING, Any, Final

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

if TYPE_CHECKING:
    from collections.abc import Iterable

    from google.protobuf.message import Message


class Type(enum.IntEnum):
    """Wire type tags (Vitess ``query.Type`` numbering)."""

    NULL_TYPE = 0
    INT64 = 265
    UINT64 = 778
    FLOAT64 = 1036
    TUPLE = 28
    VARCHAR = 6165
    VARBINARY = 10262


_PACKAGE: Final = "sqlbind.query"


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(name="sqlbind/query.proto", package=_PACKAGE, syntax="proto3")
    fld = descriptor_pb2.FieldDescriptorProto

    type_enum = fdp.enum_type.add(name="Type")
    for member in Type:
        type_enum.value.add(name=member.name, number=member.value)

    value = fdp.message_type.add(name="Value")
    value.field.add(name="type", number=1, label=fld.LABEL_OPTIONAL, type=fld.TYPE_ENUM, type_name=f".{_PACKAGE}.Type")
    value.field.add(name="value", number=2, label=fld.LABEL_OPTIONAL, type=fld.TYPE_BYTES)

    bind = fdp.message_type.add(name="BindVariable")
    bind.field.add(name="type", number=1, label=fld.LABEL_OPTIONAL, type=fld.TYPE_ENUM, type_name=f".{_PACKAGE}.Type")
    bind.field.add(name="value", number=2, label=fld.LABEL_OPTIONAL, type=fld.TYPE_BYTES)
    bind.field.add(
        name="values", number=3, label=fld.LABEL_REPEATED, type=fld.TYPE_MESSAGE, type_name=f".{_PACKAGE}.Value"
    )
    return fdp


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file().SerializeToString())

Value: type[Message] = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{_PACKAGE}.Value"))
BindVariable: type[Message] = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{_PACKAGE}.BindVariable"))

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_UINT_RE = re.compile(rb"\+?[0-9]+")
_FLOAT_RE = re.compile(rb"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

INT64_MIN: Final = -(2**63)
INT64_MAX: Final = 2**63 - 1
UINT64_MAX: Final = 2**64 - 1


def _check_raw(typ: Type, raw: bytes) -> None:
    """Raise ``ValueError`` unless *raw* is a valid textual encoding for *typ*."""
    if typ == Type.INT64:
        if not _INT_RE.fullmatch(raw) or not INT64_MIN <= int(raw) <= INT64_MAX:
            msg = f"invalid INT64 value: {raw!r}"
            raise ValueError(msg)
    elif typ == Type.UINT64:
        if not _UINT_RE.fullmatch(raw) or int(raw) > UINT64_MAX:
            msg = f"invalid UINT64 value: {raw!r}"
            raise ValueError(msg)
    elif typ == Type.FLOAT64:
        if not _FLOAT_RE.fullmatch(raw) or not math.isfinite(float(raw)):
            msg = f"invalid FLOAT64 value: {raw!r}"
            raise ValueError(msg)
    elif typ == Type.NULL_TYPE:
        if raw:
            msg = "NULL_TYPE value must be empty"
            raise ValueError(msg)
    elif typ == Type.TUPLE:
        msg = "TUPLE is not a scalar type"
        raise ValueError(msg)


def new_value(typ: Type, raw: bytes) -> Message:
    """Build a scalar ``Value`` from its textual bytes.

    Numeric types are validated: ``INT64`` requires an optionally signed decimal integer in the signed 64-bit range,
    ``UINT64`` an unsigned one, and ``FLOAT64`` a decimal floating point literal with a finite double value.  String
    types accept any bytes.

    Args:
        typ: Wire type tag of the value.
        raw: Textual encoding of the value.

    Returns:
        A ``Value`` message.

    Raises:
        ValueError: If *raw* is not valid for *typ*, or *typ* is ``TUPLE``.
    """
    _check_raw(typ, raw)
    return Value(type=typ, value=raw)


def value_bind_variable(value: Message) -> Message:
    """Wrap a scalar ``Value`` in a ``BindVariable``."""
    return BindVariable(type=value.type, value=value.value)


def int64_bind_variable(v: int) -> Message:
    return value_bind_variable(new_value(Type.INT64, str(v).encode("ascii")))


def float64_bind_variable(v: float) -> Message:
    return value_bind_variable(new_value(Type.FLOAT64, repr(float(v)).encode("ascii")))


def string_bind_variable(v: str) -> Message:
    return BindVariable(type=Type.VARCHAR, value=v.encode("utf-8"))


def bytes_bind_variable(v: bytes) -> Message:
    return BindVariable(type=Type.VARBINARY, value=v)


def tuple_bind_variable(values: Iterable[Message]) -> Message:
    """Build a ``TUPLE`` bind variable from scalar ``Value`` messages, preserving order."""
    return BindVariable(type=Type.TUPLE, values=list(values))


def _build_value(obj: object) -> Message:
    if isinstance(obj, bool):
        msg = "bool values are not supported"
        raise TypeError(msg)
    if isinstance(obj, int):
        return new_value(Type.INT64, str(obj).encode("ascii"))
    if isinstance(obj, float):
        return new_value(Type.FLOAT64, repr(obj).encode("ascii"))
    if isinstance(obj, str):
        return new_value(Type.VARCHAR, obj.encode("utf-8"))
    if isinstance(obj, (bytes, bytearray)):
        return new_value(Type.VARBINARY, bytes(obj))
    msg = f"unsupported value type: {type(obj).__name__}"
    raise TypeError(msg)


def build_bind_variable(obj: object) -> Message:
    """Build a ``BindVariable`` from a Python value.

    ``int`` maps to ``INT64``, ``float`` to ``FLOAT64``, ``str`` to ``VARCHAR``, ``bytes`` to ``VARBINARY`` and a
    ``list`` or ``tuple`` of those to ``TUPLE``.  An existing ``BindVariable`` is returned unchanged.

    Raises:
        TypeError: If *obj* (or a list element) has an unsupported type.
        ValueError: If an ``int`` does not fit in 64 bits or a ``float`` is not finite.
    """
    if isinstance(obj, BindVariable):
        return obj
    if isinstance(obj, (list, tuple)):
        return tuple_bind_variable(_build_value(item) for item in obj)
    return value_bind_variable(_build_value(obj))


def _scalar_to_python(typ: int, raw: bytes) -> Any:
    if typ in (Type.INT64, Type.UINT64):
        return int(raw)
    if typ == Type.FLOAT64:
        return float(raw)
    if typ == Type.VARCHAR:
        return raw.decode("utf-8")
    if typ == Type.NULL_TYPE:
        return None
    return raw


def to_python(bind_variable: Message) -> Any:
    """Convert a ``BindVariable`` (or ``Value``) to the matching Python value.

    ``TUPLE`` bind variables become a ``list``; ``VARBINARY`` stays ``bytes`` and ``VARCHAR`` is decoded as UTF-8.
    """
    if bind_variable.type == Type.TUPLE:
        return [_scalar_to_python(v.type, v.value) for v in bind_variable.values]
    return _scalar_to_python(bind_variable.type, bind_variable.value)
