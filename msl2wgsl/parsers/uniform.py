"""Uniform declarations.

The uniform struct must be declared in the same source and every field needs
a default value given as a sub-decorator named after the field::

    struct Uniforms { color: vec3<f32>, };
    @uniform(@color(0.05, 0.7, 0.4)) var<uniform> uniforms: Uniforms;
"""

from loguru import logger

from msl2wgsl.constants import BINDING, GROUP, UNIFORM, UNIFORM_SCALARS
from msl2wgsl.decorators import (
    UNIFORM_VARIABLE,
    Declaration,
    parse_struct_fields,
    scan_decorators,
)
from msl2wgsl.errors import MslError, ValidationError
from msl2wgsl.models import Number, UniformResource
from msl2wgsl.parsers.base import ParseContext, ResourceParser, binding_slot
from msl2wgsl.type_sizes import component_count, get_wgsl_type_size, vector_scalar


def resolve_field_values(
    field_name: str, field_type: str, values: list[Number]
) -> tuple[Number, ...]:
    """Check resolved default values against a struct field type.

    Args:
        field_name: Struct field name
        field_type: WGSL scalar or vector type of the field
        values: Evaluated default components

    Returns:
        The values as a tuple

    Raises:
        ValidationError: Unsupported field type, wrong component count, or
            non-integer values for an integer field
    """
    expected = component_count(field_type)
    scalar = vector_scalar(field_type)
    if expected is None or scalar not in UNIFORM_SCALARS:
        raise ValidationError(f"Unsupported uniform type for field '{field_name}': {field_type}")
    if len(values) != expected:
        raise ValidationError(
            f"Invalid number of values for field '{field_name}' of type {field_type}: "
            f"expected {expected} components, got {len(values)}"
        )
    if scalar in ("i32", "u32"):
        for value in values:
            if not float(value).is_integer() or (scalar == "u32" and value < 0):
                raise ValidationError(
                    f"Field '{field_name}' of type {field_type} cannot hold {value}"
                )
        return tuple(int(value) for value in values)
    return tuple(values)


class UniformParser(ResourceParser):
    kind = UNIFORM
    label = "Uniform"

    def validate_kind(self, text: str) -> list[MslError]:
        if not UNIFORM_VARIABLE.search(text):
            return [
                ValidationError(
                    "Invalid or missing uniform variable. "
                    "Must be var<uniform> <name>: <StructType>"
                )
            ]
        return []

    def build(self, declaration: Declaration, context: ParseContext) -> UniformResource:
        text = declaration.text
        variable = UNIFORM_VARIABLE.search(text)
        name, struct_type = variable.group("name"), variable.group("type")

        if struct_type not in context.structs:
            raise ValidationError(f"Could not find struct definition for {struct_type}")
        struct_fields = parse_struct_fields(context.structs[struct_type])
        if not struct_fields:
            raise ValidationError(f"Struct {struct_type} has no fields")

        defaults = self._field_defaults(text)
        fields: dict[str, tuple[Number, ...]] = {}
        byte_size = 0
        for field_name, field_type in struct_fields.items():
            if field_name not in defaults:
                raise ValidationError(f"Missing default value for field '{field_name}'")
            fields[field_name] = resolve_field_values(
                field_name, field_type, context.evaluate(defaults[field_name])
            )
            byte_size += get_wgsl_type_size(field_type, context.structs)

        for unused in defaults.keys() - struct_fields.keys():
            logger.warning(
                f"Uniform '{name}' (line {declaration.line}): @{unused} does not match "
                f"any field of {struct_type}"
            )

        group, binding = binding_slot(text)
        return UniformResource(
            name=name,
            group=group,
            binding=binding,
            declaration_index=declaration.index,
            used_in_body=context.used_in_body(name),
            wildcards=context.wildcards_in(*defaults.values()),
            struct_type=struct_type,
            fields=fields,
            byte_size=byte_size,
        )

    @staticmethod
    def _field_defaults(text: str) -> dict[str, str]:
        """Default value expressions nested in @uniform(...), by field name."""
        defaults: dict[str, str] = {}
        for call in scan_decorators(text):
            if call.name != UNIFORM:
                continue
            for child in call.children():
                if child.name in (GROUP, BINDING):
                    continue
                if not (child.argument or "").strip():
                    raise ValidationError(f"@{child.name} needs a default value")
                defaults[child.name] = child.argument
        return defaults
