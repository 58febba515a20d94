"""Texture declarations: ``@texture(@size(...) @format(...)) var t: texture_2d<f32>;``"""

from msl2wgsl.constants import FORMAT, SIZE, TEXTURE, VALID_TEXTURE_TYPES
from msl2wgsl.decorators import TEXTURE_VARIABLE, Declaration, find_decorator
from msl2wgsl.errors import DimensionMismatchError, MslError, ValidationError
from msl2wgsl.models import Number, TextureResource
from msl2wgsl.parsers.base import (
    ParseContext,
    ResourceParser,
    binding_slot,
    positive_integer,
)


def texture_base_type(texture_type: str) -> str:
    """Texture type without its template arguments."""
    return texture_type.split("<")[0].strip()


def texture_dimensions(texture_type: str) -> int:
    """Number of size components a texture type needs.

    1D textures need one, 3D and array textures need three (the third being
    the layer count for arrays), everything else needs two.
    """
    base = texture_base_type(texture_type)
    if base.endswith("_1d"):
        return 1
    if base.endswith("_3d") or "array" in base:
        return 3
    return 2


def resolve_texture_size(values: list[Number], texture_type: str) -> tuple[int, ...]:
    """Check resolved size values against the texture type.

    Non-array textures given fewer values than they need are padded by
    repeating the last value; array textures need every value explicitly.

    Args:
        values: Evaluated @size components
        texture_type: WGSL texture type

    Returns:
        Positive integer size with one entry per dimension

    Raises:
        DimensionMismatchError: Too many values, or too few for an array type
        ValidationError: A value is not a positive integer
    """
    expected = texture_dimensions(texture_type)
    base = texture_base_type(texture_type)
    provided = ", ".join(str(value) for value in values)

    if len(values) > expected:
        raise DimensionMismatchError(
            f"Incorrect number of dimensions for {base}: expected {expected} "
            f"but got {len(values)} ({provided})"
        )
    if len(values) < expected:
        if "array" in base:
            raise DimensionMismatchError(
                f"Insufficient dimensions for {base}: expected {expected} values "
                f"(width, height, array_size) but got {len(values)} ({provided})"
            )
        values = values + [values[-1]] * (expected - len(values))

    return tuple(
        positive_integer(value, f"Texture size at position {position}")
        for position, value in enumerate(values, 1)
    )


class TextureParser(ResourceParser):
    kind = TEXTURE
    label = "Texture"

    def validate_kind(self, text: str) -> list[MslError]:
        issues: list[MslError] = []
        for name in (SIZE, FORMAT):
            call = find_decorator(text, name)
            if call is None or not (call.argument or "").strip():
                issues.append(ValidationError(f"Missing @{name} decorator"))
        if not TEXTURE_VARIABLE.search(text):
            issues.append(
                ValidationError("Missing or malformed variable declaration 'var <name>: texture_*'")
            )
        return issues

    def build(self, declaration: Declaration, context: ParseContext) -> TextureResource:
        text = declaration.text
        variable = TEXTURE_VARIABLE.search(text)
        texture_type = " ".join(variable.group("type").split())
        if texture_base_type(texture_type) not in VALID_TEXTURE_TYPES:
            raise ValidationError(f"Invalid texture type: {texture_base_type(texture_type)}")

        size_expression = find_decorator(text, SIZE).argument
        size = resolve_texture_size(context.evaluate(size_expression), texture_type)

        texture_format = find_decorator(text, FORMAT).argument.strip()
        if not texture_format.replace("-", "").replace("_", "").isalnum():
            raise ValidationError(f"Invalid texture format: '{texture_format}'")

        group, binding = binding_slot(text)
        name = variable.group("name")
        return TextureResource(
            name=name,
            group=group,
            binding=binding,
            declaration_index=declaration.index,
            used_in_body=context.used_in_body(name),
            wildcards=context.wildcards_in(size_expression),
            size=size,
            format=texture_format,
            texture_type=texture_type,
        )
