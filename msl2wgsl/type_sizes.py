"""Byte sizes of WGSL types.

Sizes are the sum of the component sizes without alignment padding; the
layout packing itself is done by the GPU resource manager.
"""

import re
from collections.abc import Mapping

from msl2wgsl.constants import SCALAR_SIZES, SHORTHAND_SCALARS
from msl2wgsl.decorators import parse_struct_fields
from msl2wgsl.errors import ValidationError

_VECTOR = re.compile(r"^vec([234])\s*<\s*(\w+)\s*>$")
_VECTOR_SHORTHAND = re.compile(r"^vec([234])([fiuh])$")
_MATRIX = re.compile(r"^mat([234])x([234])\s*<\s*(\w+)\s*>$")
_MATRIX_SHORTHAND = re.compile(r"^mat([234])x([234])([fh])$")
_ARRAY = re.compile(r"^array\s*<(?P<inner>.+?)(?:,\s*(?P<count>\d+)\s*)?>$", re.DOTALL)
_INLINE_STRUCT = re.compile(r"^struct\s+\w+\s*\{(?P<body>.*)\}$", re.DOTALL)


def scalar_size(scalar: str) -> int:
    """Size of a scalar type."""
    if scalar not in SCALAR_SIZES:
        raise ValidationError(f"Unknown scalar type: {scalar}")
    return SCALAR_SIZES[scalar]


def get_wgsl_type_size(type_name: str, structs: Mapping[str, str] | None = None) -> int:
    """Compute the byte size of a WGSL type.

    Args:
        type_name: WGSL type, e.g. ``vec3<f32>``, ``array<f32, 4>`` or a struct
        structs: Struct name to struct body text, used to size named structs

    Returns:
        Size in bytes. A runtime-sized array counts as one element.

    Raises:
        ValidationError: If the type is unknown
    """
    type_name = " ".join(type_name.split())
    structs = structs or {}

    if type_name in SCALAR_SIZES:
        return SCALAR_SIZES[type_name]

    if match := _VECTOR.match(type_name):
        return int(match.group(1)) * scalar_size(match.group(2))
    if match := _VECTOR_SHORTHAND.match(type_name):
        return int(match.group(1)) * scalar_size(SHORTHAND_SCALARS[match.group(2)])

    if match := _MATRIX.match(type_name):
        columns, rows, scalar = match.groups()
        return int(columns) * int(rows) * scalar_size(scalar)
    if match := _MATRIX_SHORTHAND.match(type_name):
        columns, rows, suffix = match.groups()
        return int(columns) * int(rows) * scalar_size(SHORTHAND_SCALARS[suffix])

    if match := _ARRAY.match(type_name):
        count = int(match.group("count")) if match.group("count") else 1
        return get_wgsl_type_size(match.group("inner"), structs) * count

    if match := _INLINE_STRUCT.match(type_name):
        return _struct_size(match.group("body"), structs)

    if type_name in structs:
        return _struct_size(structs[type_name], structs)

    raise ValidationError(f"Unknown type: {type_name}")


def _struct_size(body: str, structs: Mapping[str, str]) -> int:
    return sum(
        get_wgsl_type_size(field_type, structs)
        for field_type in parse_struct_fields(body).values()
    )


def component_count(type_name: str) -> int | None:
    """Number of scalar components of a scalar or vector type.

    Returns:
        1 for scalars, N for ``vecN`` types, None for anything else
    """
    type_name = " ".join(type_name.split())
    if type_name in SCALAR_SIZES:
        return 1
    if match := _VECTOR.match(type_name) or _VECTOR_SHORTHAND.match(type_name):
        return int(match.group(1))
    return None


def vector_scalar(type_name: str) -> str | None:
    """Scalar type of a scalar or vector type."""
    type_name = " ".join(type_name.split())
    if type_name in SCALAR_SIZES:
        return type_name
    if match := _VECTOR.match(type_name):
        return match.group(2)
    if match := _VECTOR_SHORTHAND.match(type_name):
        return SHORTHAND_SCALARS[match.group(2)]
    return None
