"""Storage buffer declarations.

``@buffer(@size(n) @stride(s)) var<storage, read_write> b: array<f32>;``
"""

import re

from msl2wgsl.constants import BUFFER, SIZE, STRIDE
from msl2wgsl.decorators import (
    STORAGE_VARIABLE,
    Declaration,
    find_decorator,
    parse_struct_fields,
)
from msl2wgsl.errors import MslError, ValidationError
from msl2wgsl.models import BufferResource
from msl2wgsl.parsers.base import (
    ParseContext,
    ResourceParser,
    binding_slot,
    positive_integer,
)

_STORAGE_QUALIFIER = re.compile(r"\bvar\s*<\s*storage\s*,\s*(read|read_write)\s*>")
_BACKING_TYPE = re.compile(r":\s*(array\s*<.+>|struct\s+\w+\s*\{.*\})", re.DOTALL)
_INLINE_STRUCT = re.compile(r"^struct\s+\w+\s*\{(?P<body>.*)\}$", re.DOTALL)
_STRUCTURED_STRIDE = re.compile(r"structured\s*<\s*(\d+)\s*>")


def check_backing_type(element_type: str) -> str:
    """Validate a storage buffer backing type: ``array<T>`` or an inline struct.

    Raises:
        ValidationError: If the type is neither, or the struct has no fields
    """
    if element_type.startswith("array"):
        return element_type
    if match := _INLINE_STRUCT.match(element_type):
        if not parse_struct_fields(match.group("body")):
            raise ValidationError("Struct must contain at least one field")
        return element_type
    raise ValidationError(f"Invalid storage buffer type: {element_type}")


class BufferParser(ResourceParser):
    kind = BUFFER
    label = "Buffer"

    def validate_kind(self, text: str) -> list[MslError]:
        issues: list[MslError] = []
        size = find_decorator(text, SIZE)
        if size is None or not (size.argument or "").strip():
            issues.append(ValidationError("Missing @size decorator"))
        if not _STORAGE_QUALIFIER.search(text):
            issues.append(
                ValidationError(
                    "Invalid or missing storage qualifier. "
                    "Must be var<storage, read> or var<storage, read_write>"
                )
            )
        elif not STORAGE_VARIABLE.search(text):
            issues.append(ValidationError("Missing or invalid variable declaration"))
        if not _BACKING_TYPE.search(text):
            issues.append(
                ValidationError("Invalid type declaration. Must be either array<T> or a struct")
            )
        return issues

    def build(self, declaration: Declaration, context: ParseContext) -> BufferResource:
        text = declaration.text
        variable = STORAGE_VARIABLE.search(text)
        element_type = check_backing_type(" ".join(variable.group("type").split()))

        size_expression = find_decorator(text, SIZE).argument
        size = self._single_positive(context, size_expression, "Buffer size")

        stride_call = find_decorator(text, STRIDE)
        stride_expression = stride_call.argument if stride_call else None
        if stride_expression:
            stride = self._single_positive(context, stride_expression, "Buffer stride")
        elif match := _STRUCTURED_STRIDE.search(element_type):
            stride = positive_integer(int(match.group(1)), "Buffer stride")
        else:
            stride = None

        if "structured" in element_type:
            if stride is None:
                raise ValidationError("Structured buffers need a stride")
            if size % stride != 0:
                raise ValidationError(
                    f"Buffer size ({size}) must be a multiple of stride ({stride})"
                )

        group, binding = binding_slot(text)
        name = variable.group("name")
        return BufferResource(
            name=name,
            group=group,
            binding=binding,
            declaration_index=declaration.index,
            used_in_body=context.used_in_body(name),
            wildcards=context.wildcards_in(size_expression, stride_expression),
            element_count=size,
            element_type=element_type,
            access=variable.group("access"),
            stride=stride,
        )

    @staticmethod
    def _single_positive(context: ParseContext, expression: str, what: str) -> int:
        values = context.evaluate(expression)
        if len(values) != 1:
            raise ValidationError(
                f"{what} must be a single value, but got {len(values)} values: "
                f"[{', '.join(str(value) for value in values)}]"
            )
        return positive_integer(values[0], what)
