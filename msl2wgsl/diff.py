"""
Resource delta between two parses of the same shader.

Resources are matched by identity ``(name, group, resource_type)``. A matched
pair that differs only in its binding slot is a reorder and only needs its
bind group rebuilt; any other difference recreates the resource.
"""

from dataclasses import replace

from loguru import logger

from msl2wgsl.models import Resource, ShaderMetadata, ShaderMetadataDiff


def same_apart_from_binding(before: Resource, after: Resource) -> bool:
    """Whether two resources are equal ignoring binding and declaration index."""
    return (
        replace(before, binding=after.binding, declaration_index=after.declaration_index)
        == after
    )


def diff_shader_metadata(before: ShaderMetadata, after: ShaderMetadata) -> ShaderMetadataDiff:
    """Compute what has to change to go from one parse result to the next.

    Args:
        before: Previous parse result
        after: New parse result

    Returns:
        The diff. Neither input is modified.
    """
    diff = ShaderMetadataDiff(
        requires_full_rebuild=(
            before.kind != after.kind or before.kind_metadata != after.kind_metadata
        ),
        code_changed=before.code != after.code,
    )

    before_resources = {resource.identity: resource for resource in before.resources}
    after_resources = {resource.identity: resource for resource in after.resources}

    for identity, old in before_resources.items():
        new = after_resources.get(identity)
        if new is None:
            diff.removed.append(old)
        elif not same_apart_from_binding(old, new):
            diff.removed.append(old)
            diff.added.append(new)
        elif old.binding != new.binding:
            diff.reordered.append(new)

    for identity, new in after_resources.items():
        if identity not in before_resources:
            diff.added.append(new)

    logger.debug(
        f"Shader diff: rebuild={diff.requires_full_rebuild}, "
        f"removed={[r.name for r in diff.removed]}, "
        f"added={[r.name for r in diff.added]}, "
        f"reordered={[r.name for r in diff.reordered]}"
    )
    return diff
