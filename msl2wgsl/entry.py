"""
Entry point metadata extraction.

A shader is a compute shader when it carries ``@compute(<thread count>)``, a
fragment shader when it carries ``@fragment(<target>)``, and a resource-only
module otherwise. Bare ``@compute`` / ``@fragment`` attributes are plain WGSL
and do not select a kind.

Errors raised here are fatal for the whole parse.
"""

import re
from collections.abc import Sequence

from loguru import logger

from msl2wgsl.constants import (
    CANVAS,
    COMPUTE,
    DEFAULT_WORKGROUP_SIZES,
    FRAGMENT,
    RESOLVE,
    WORKGROUP_SIZE,
)
from msl2wgsl.decorators import DecoratorCall, line_of, scan_decorators
from msl2wgsl.errors import MslError, ShaderKindConflictError, ValidationError
from msl2wgsl.models import (
    ComputeMetadata,
    FragmentMetadata,
    Number,
    Resource,
    ShaderKind,
)
from msl2wgsl.parsers.base import ParseContext, positive_integer

_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$")


def find_calls(code: str, name: str) -> list[DecoratorCall]:
    """Find every ``@name(...)`` invocation with its offsets in ``code``.

    Each invocation is matched on its own, so an unbalanced declaration
    elsewhere in the source cannot hide it.
    """
    calls = []
    for match in re.finditer(rf"@{name}\b\s*\(", code):
        call = scan_decorators(code[match.start() :])[0]
        calls.append(
            DecoratorCall(
                call.name,
                call.argument,
                match.start() + call.start,
                match.start() + call.end,
                call.balanced,
            )
        )
    return calls


def find_call(code: str, name: str) -> DecoratorCall | None:
    calls = find_calls(code, name)
    return calls[0] if calls else None


def detect_shader_kind(code: str) -> ShaderKind:
    """Decide the shader kind from its entry decorators.

    Raises:
        ShaderKindConflictError: If both @compute(...) and @fragment(...) appear
    """
    compute = find_call(code, COMPUTE)
    fragment = find_call(code, FRAGMENT)
    if compute and fragment:
        later = max(compute.start, fragment.start)
        raise ShaderKindConflictError(
            "Shader cannot be both compute and fragment", line_of(code, later)
        )
    if compute:
        return ShaderKind.COMPUTE
    if fragment:
        return ShaderKind.FRAGMENT
    return ShaderKind.RESOURCE


def pad_to_3d(values: Sequence[int]) -> tuple[int, int, int]:
    """Pad one to three components with 1s."""
    padded = tuple(values) + (1,) * (3 - len(values))
    return padded[0], padded[1], padded[2]


def parse_compute_metadata(context: ParseContext) -> ComputeMetadata:
    """Read the thread count and workgroup layout of a compute shader.

    Args:
        context: Shared parse inputs

    Returns:
        Compute metadata with padded workgroup size and thread count

    Raises:
        MslError: If the thread count or workgroup size cannot be resolved
    """
    code = context.code
    compute = find_call(code, COMPUTE)
    try:
        if not compute.balanced or not (compute.argument or "").strip():
            raise ValidationError(
                "Compute shader must have @compute decorator with workgroup count"
            )
        counts = context.evaluate(compute.argument)
        if len(counts) > 3:
            raise ValidationError(
                f"Invalid number of workgroup count parameters: {len(counts)}"
            )
        thread_count = [positive_integer(value, "Thread count") for value in counts]
    except MslError as e:
        raise e.at(line_of(code, compute.start), code[compute.start : compute.end]) from e

    dimensionality = len(thread_count)
    workgroup = find_call(code, WORKGROUP_SIZE)
    if workgroup is None:
        workgroup_size = DEFAULT_WORKGROUP_SIZES[dimensionality]
    else:
        try:
            sizes = context.evaluate(workgroup.argument or "")
            if len(sizes) > dimensionality:
                raise ValidationError(
                    f"@workgroup_size has more dimensions ({len(sizes)}D) "
                    f"than @compute ({dimensionality}D)"
                )
            workgroup_size = pad_to_3d(
                [positive_integer(value, "Workgroup size") for value in sizes]
            )
        except MslError as e:
            raise e.at(
                line_of(code, workgroup.start), code[workgroup.start : workgroup.end]
            ) from e

    metadata = ComputeMetadata(dimensionality, workgroup_size, pad_to_3d(thread_count))
    logger.debug(f"Compute metadata: {metadata}")
    return metadata


def canvas_size(values: Sequence[Number], max_size: int) -> tuple[int, int]:
    """Validate an explicit @canvas size.

    Raises:
        ValidationError: Not exactly two positive integers within ``max_size``
    """
    if len(values) != 2:
        raise ValidationError(
            f"@canvas requires exactly 2 dimensions (width, height), got {len(values)} "
            f"[{', '.join(str(value) for value in values)}]"
        )
    size = []
    for label, value in zip(("Width", "Height"), values):
        dimension = positive_integer(value, f"Canvas {label.lower()}")
        if dimension > max_size:
            raise ValidationError(
                f"{label} exceeds maximum allowed size ({max_size}): {dimension}"
            )
        size.append(dimension)
    return size[0], size[1]


def parse_fragment_metadata(
    context: ParseContext, resources: Sequence[Resource]
) -> FragmentMetadata:
    """Read the render target of a fragment shader.

    Args:
        context: Shared parse inputs, including the viewport provider
        resources: Parsed resources, used to reject rendering into a texture
            the shader also reads

    Returns:
        Fragment metadata

    Raises:
        MslError: Invalid target, canvas size or resolve target
    """
    code = context.code
    fragment = find_call(code, FRAGMENT)
    line = line_of(code, fragment.start)
    try:
        metadata = _fragment_target(context, fragment)
        resolve = find_call(code, RESOLVE)
        if resolve is not None:
            target = (resolve.argument or "").strip()
            if not _IDENTIFIER.match(target):
                raise ValidationError(f"Invalid @resolve target: '{target}'")
            if metadata.is_canvas:
                raise ValidationError(
                    "Cannot specify @resolve target when using @canvas as fragment output"
                )
            metadata = FragmentMetadata(metadata.target_view, resolve_target=target)

        for resource in resources:
            if resource.name == metadata.target_view and resource.used_in_body:
                raise ValidationError(
                    f"Cannot render to texture '{resource.name}' as it is used "
                    f"within the shader body"
                )
    except MslError as e:
        raise e.at(line, code[fragment.start : fragment.end]) from e

    logger.debug(f"Fragment metadata: {metadata}")
    return metadata


def _fragment_target(context: ParseContext, fragment: DecoratorCall) -> FragmentMetadata:
    argument = (fragment.argument or "").strip()
    children = scan_decorators(argument)
    if children and children[0].start == 0 and children[0].name == CANVAS:
        canvas = children[0]
        if canvas.argument is None:
            if context.config.viewport is None:
                raise ValidationError(
                    "@canvas without a size needs a viewport size provider"
                )
            size = canvas_size(
                context.config.viewport.viewport_size(), context.config.max_canvas_size
            )
        else:
            try:
                size = canvas_size(
                    context.evaluate(canvas.argument), context.config.max_canvas_size
                )
            except MslError as e:
                raise type(e)(f"Invalid @canvas parameters: {e.message}") from e
        return FragmentMetadata(CANVAS, is_canvas=True, canvas_size=size)

    if not _IDENTIFIER.match(argument):
        raise ValidationError(
            f"@fragment decorator must specify a target texture or @canvas, got '{argument}'"
        )
    return FragmentMetadata(argument)


def parse_entry_metadata(
    kind: ShaderKind, context: ParseContext, resources: Sequence[Resource]
) -> ComputeMetadata | FragmentMetadata | None:
    """Dispatch to the metadata parser of the shader kind."""
    if kind is ShaderKind.COMPUTE:
        return parse_compute_metadata(context)
    if kind is ShaderKind.FRAGMENT:
        return parse_fragment_metadata(context, resources)
    return None
