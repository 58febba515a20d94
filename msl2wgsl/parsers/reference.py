"""Reference declarations: ``@ref(node.resource) var<storage, read> b: array<f32>;``

A reference binds a resource owned by another shader node. Its category is
inferred from the local variable declaration.
"""

import re

from msl2wgsl.constants import REF, VALID_TEXTURE_TYPES
from msl2wgsl.decorators import STORAGE_VARIABLE, Declaration, find_decorator
from msl2wgsl.errors import MslError, UnresolvableCategoryError, ValidationError
from msl2wgsl.models import ReferenceResource, ResourceCategory
from msl2wgsl.parsers.base import ParseContext, ResourceParser, binding_slot
from msl2wgsl.parsers.texture import texture_base_type

_TARGET = re.compile(r"^(?P<node>[A-Za-z_]\w*)\.(?P<resource>[A-Za-z_]\w*)$")
_PLAIN_VARIABLE = re.compile(r"\bvar\s+(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>[^;]+)")
_UNIFORM_VARIABLE = re.compile(
    r"\bvar\s*<\s*uniform\s*>\s*(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>[^;]+)"
)


def parse_variable(text: str) -> tuple[str, str, str | None]:
    """Read (name, type, access) of the variable a reference declares.

    Raises:
        ValidationError: If no variable declaration shape matches
    """
    if match := STORAGE_VARIABLE.search(text):
        return match.group("name"), _normalize(match.group("type")), match.group("access")
    if match := _UNIFORM_VARIABLE.search(text):
        return match.group("name"), _normalize(match.group("type")), None
    if match := _PLAIN_VARIABLE.search(text):
        return match.group("name"), _normalize(match.group("type")), None
    raise ValidationError("Invalid variable declaration syntax")


def resource_category(wgsl_type: str, text: str) -> ResourceCategory:
    """Infer what kind of resource a reference points at.

    Raises:
        UnresolvableCategoryError: If the type matches no category
    """
    if re.search(r"<\s*storage", text):
        return ResourceCategory.STORAGE
    if re.search(r"<\s*uniform", text):
        return ResourceCategory.UNIFORM
    if wgsl_type in ("sampler", "sampler_comparison"):
        return ResourceCategory.SAMPLER
    if texture_base_type(wgsl_type) in VALID_TEXTURE_TYPES:
        return ResourceCategory.TEXTURE
    raise UnresolvableCategoryError(
        f"Unable to determine resource category for type: {wgsl_type}"
    )


def _normalize(wgsl_type: str) -> str:
    return " ".join(wgsl_type.split())


class ReferenceParser(ResourceParser):
    kind = REF
    label = "Reference"

    def validate_kind(self, text: str) -> list[MslError]:
        issues: list[MslError] = []
        call = find_decorator(text, REF)
        if call is None or not (call.argument or "").strip():
            issues.append(ValidationError("Missing reference parameter"))
        try:
            parse_variable(text)
        except ValidationError as e:
            issues.append(e)
        return issues

    def build(self, declaration: Declaration, context: ParseContext) -> ReferenceResource:
        text = declaration.text
        target = _TARGET.match(find_decorator(text, REF).argument.strip())
        if target is None:
            raise ValidationError(
                "Invalid reference format. Must be in the form 'node_name.resource_name'"
            )

        name, wgsl_type, access = parse_variable(text)
        group, binding = binding_slot(text)
        return ReferenceResource(
            name=name,
            group=group,
            binding=binding,
            declaration_index=declaration.index,
            used_in_body=context.used_in_body(name),
            target_node=target.group("node"),
            target_resource=target.group("resource"),
            wgsl_type=wgsl_type,
            category=resource_category(wgsl_type, text),
            access=access,
        )
