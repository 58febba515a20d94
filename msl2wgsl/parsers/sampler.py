"""Sampler declarations: ``@sampler(@magFilter(linear)) var s: sampler;``"""

from msl2wgsl.constants import (
    BINDING,
    GROUP,
    SAMPLER,
    SAMPLER_ALLOWED_VALUES,
    SAMPLER_NUMERIC_RANGES,
)
from msl2wgsl.decorators import SAMPLER_VARIABLE, Declaration, scan_decorators
from msl2wgsl.errors import MslError, ValidationError
from msl2wgsl.models import Number, SamplerResource
from msl2wgsl.parsers.base import ParseContext, ResourceParser, binding_slot

# Sampler parameter decorator names mapped to SamplerResource fields
_FIELD_NAMES = {
    "addressModeU": "address_mode_u",
    "addressModeV": "address_mode_v",
    "addressModeW": "address_mode_w",
    "magFilter": "mag_filter",
    "minFilter": "min_filter",
    "mipmapFilter": "mipmap_filter",
    "lodMinClamp": "lod_min_clamp",
    "lodMaxClamp": "lod_max_clamp",
    "compare": "compare",
    "maxAnisotropy": "max_anisotropy",
}


def check_enum_parameter(name: str, value: str) -> str:
    allowed = SAMPLER_ALLOWED_VALUES[name]
    if value not in allowed:
        raise ValidationError(
            f'Invalid {name} value: "{value}". Must be one of: {", ".join(allowed)}'
        )
    return value


def check_numeric_parameter(name: str, values: list[Number]) -> Number:
    minimum, maximum = SAMPLER_NUMERIC_RANGES[name]
    if len(values) != 1:
        raise ValidationError(
            f"{name} must resolve to a single number, got {len(values)} values"
        )
    if not minimum <= values[0] <= maximum:
        raise ValidationError(f"{name} must be between {minimum} and {maximum}, got {values[0]}")
    return values[0]


class SamplerParser(ResourceParser):
    kind = SAMPLER
    label = "Sampler"

    def validate_kind(self, text: str) -> list[MslError]:
        if not SAMPLER_VARIABLE.search(text):
            return [ValidationError("Invalid or missing sampler variable 'var <name>: sampler'")]
        return []

    def build(self, declaration: Declaration, context: ParseContext) -> SamplerResource:
        text = declaration.text
        parameters = self._parameters(text)

        options: dict[str, object] = {}
        for name, argument in parameters.items():
            if name in SAMPLER_ALLOWED_VALUES:
                options[_FIELD_NAMES[name]] = check_enum_parameter(name, argument.strip())
            else:
                options[_FIELD_NAMES[name]] = check_numeric_parameter(
                    name, context.evaluate(argument)
                )

        lod_min, lod_max = options.get("lod_min_clamp"), options.get("lod_max_clamp")
        if lod_min is not None and lod_max is not None and lod_min > lod_max:
            raise ValidationError(
                f"lodMinClamp ({lod_min}) must not exceed lodMaxClamp ({lod_max})"
            )

        numeric = [parameters[name] for name in SAMPLER_NUMERIC_RANGES if name in parameters]
        group, binding = binding_slot(text)
        name = SAMPLER_VARIABLE.search(text).group("name")
        return SamplerResource(
            name=name,
            group=group,
            binding=binding,
            declaration_index=declaration.index,
            used_in_body=context.used_in_body(name),
            wildcards=context.wildcards_in(*numeric),
            **options,
        )

    @staticmethod
    def _parameters(text: str) -> dict[str, str]:
        """Parameter decorators nested in @sampler(...), by name."""
        parameters: dict[str, str] = {}
        for call in scan_decorators(text):
            if call.name != SAMPLER:
                continue
            for child in call.children():
                if child.name in (GROUP, BINDING):
                    continue
                if child.name not in _FIELD_NAMES:
                    raise ValidationError(f"Unknown sampler parameter: @{child.name}")
                if child.name in parameters:
                    raise ValidationError(f"Duplicate sampler parameter: @{child.name}")
                if not (child.argument or "").strip():
                    raise ValidationError(f"@{child.name} needs a value")
                parameters[child.name] = child.argument
        return parameters
