"""
WGSL code emitter.

Turns MSL source into plain WGSL. The source is split into open regions
(top-level declarations and decorators) and protected regions (function
definitions and brace blocks). Protected regions are copied unchanged. In open
regions the MSL decorators are removed, resource variables get their
allocated ``@group`` / ``@binding`` and the entry decorators are rewritten to
their WGSL form.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from msl2wgsl.constants import (
    BINDING,
    COMPUTE,
    FRAGMENT,
    GROUP,
    MSL_DECORATORS,
    WORKGROUP_SIZE,
)
from msl2wgsl.decorators import (
    VARIABLE_NAME,
    DecoratorCall,
    find_closing_brace,
    remove_decorators,
    scan_decorators,
)
from msl2wgsl.models import ComputeMetadata, FragmentMetadata, Resource, ShaderKind

_PROTECTED_START = re.compile(r"\bfn\s+[A-Za-z_]\w*|\{")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")


@dataclass(frozen=True)
class Region:
    """A slice of source that is either rewritten or copied as is."""

    text: str
    protected: bool


def split_regions(code: str) -> list[Region]:
    """Split source into alternating open and protected regions.

    A protected region starts at a ``fn`` keyword or at a top-level ``{`` and
    ends at the brace closing that block. An unclosed block extends to the
    end of the source.
    """
    regions: list[Region] = []
    start = 0
    while match := _PROTECTED_START.search(code, start):
        open_index = match.start() if match.group(0) == "{" else code.find("{", match.end())
        if open_index == -1:
            break
        close = find_closing_brace(code, open_index)
        end = len(code) if close == -1 else close + 1
        if match.start() > start:
            regions.append(Region(code[start : match.start()], False))
        regions.append(Region(code[match.start() : end], True))
        start = end
    if start < len(code):
        regions.append(Region(code[start:], False))
    return regions


def transform_code(
    code: str,
    resources: Sequence[Resource],
    kind: ShaderKind,
    kind_metadata: ComputeMetadata | FragmentMetadata | None = None,
) -> str:
    """Produce WGSL from comment-free MSL source.

    Args:
        code: MSL source without comments
        resources: Resources with their allocated bindings
        kind: Kind of the shader
        kind_metadata: Entry metadata; supplies the workgroup size injected
            after ``@compute``

    Returns:
        WGSL source without blank lines
    """
    slots = {resource.name: (resource.group, resource.binding) for resource in resources}
    workgroup_size = (
        kind_metadata.workgroup_size if isinstance(kind_metadata, ComputeMetadata) else None
    )

    pieces = []
    for region in split_regions(code):
        if region.protected:
            pieces.append(region.text)
            continue
        at_line_start = not pieces or pieces[-1].endswith("\n")
        pieces.append(
            _rewrite_open_region(region.text, slots, kind, workgroup_size, at_line_start)
        )

    lines = (line.rstrip() for line in "".join(pieces).split("\n"))
    return "\n".join(line for line in lines if line)


def _rewrite_open_region(
    text: str,
    slots: dict[str, tuple[int, int]],
    kind: ShaderKind,
    workgroup_size: tuple[int, int, int] | None,
    at_line_start: bool,
) -> str:
    def is_msl_only(call: DecoratorCall) -> bool:
        if call.name in MSL_DECORATORS:
            return True
        return kind is ShaderKind.COMPUTE and call.name == WORKGROUP_SIZE

    text = "".join(
        _rewrite_statement(piece, slots, is_msl_only, workgroup_size)
        for piece in re.split(r"(?<=;)", text)
    )

    lines = _HORIZONTAL_SPACE.sub(" ", text).split("\n")
    return "\n".join(
        line.lstrip() if index > 0 or at_line_start else line
        for index, line in enumerate(lines)
    )


def _rewrite_statement(
    piece: str,
    slots: dict[str, tuple[int, int]],
    is_msl_only: Callable[[DecoratorCall], bool],
    workgroup_size: tuple[int, int, int] | None,
) -> str:
    """Rewrite one ``;``-terminated piece of an open region.

    A piece holding an unclosed decorator is dropped except for its leading
    whitespace.
    """
    if any(not call.balanced for call in scan_decorators(piece)):
        return piece[: len(piece) - len(piece.lstrip())]
    piece = remove_decorators(piece, is_msl_only)
    piece = _rewrite_entry_decorators(piece, workgroup_size)
    return _bind_variable(piece, slots)


def _rewrite_entry_decorators(
    text: str, workgroup_size: tuple[int, int, int] | None
) -> str:
    for call in reversed(scan_decorators(text)):
        if call.argument is None:
            continue
        if call.name == COMPUTE:
            replacement = "@compute"
            if workgroup_size is not None:
                x, y, z = workgroup_size
                replacement += f" @workgroup_size({x}, {y}, {z})"
        elif call.name == FRAGMENT:
            replacement = "@fragment"
        else:
            continue
        text = text[: call.start] + replacement + text[call.end :]
    return text


def _bind_variable(piece: str, slots: dict[str, tuple[int, int]]) -> str:
    """Prefix a resource variable declaration with its allocated slot."""
    match = VARIABLE_NAME.search(piece)
    if match is None or match.group("name") not in slots:
        return piece

    piece = remove_decorators(piece, lambda call: call.name in (GROUP, BINDING))
    match = VARIABLE_NAME.search(piece)
    group, binding = slots[match.group("name")]
    return f"{piece[: match.start()]}@group({group}) @binding({binding}) {piece[match.start() :]}"
