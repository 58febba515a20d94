"""
Binding allocator for parsed resources.

Resources without an explicit binding get the smallest free slot of their
group, in declaration order. Explicit bindings are never moved, so a high
explicit binding does not push automatic slots past it.
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from msl2wgsl.constants import UNASSIGNED_BINDING
from msl2wgsl.models import BindingCollision, Resource


def allocate_bindings(
    resources: Sequence[Resource],
) -> tuple[list[Resource], list[BindingCollision]]:
    """Assign binding slots and report collisions.

    Args:
        resources: Parsed resources in any order

    Returns:
        Tuple of the resources sorted by (group, binding) and the collisions
        found after assignment. Collisions never stop allocation.
    """
    claimed: dict[int, set[int]] = defaultdict(set)
    for resource in resources:
        if resource.binding != UNASSIGNED_BINDING:
            claimed[resource.group].add(resource.binding)

    allocated: list[Resource] = []
    for resource in sorted(resources, key=lambda r: r.declaration_index):
        if resource.binding == UNASSIGNED_BINDING:
            slot = 0
            while slot in claimed[resource.group]:
                slot += 1
            claimed[resource.group].add(slot)
            resource = replace(resource, binding=slot)
            logger.debug(
                f"Assigned {resource.name} to group {resource.group}, binding {slot}"
            )
        allocated.append(resource)

    collisions = find_collisions(allocated)
    allocated.sort(key=lambda r: (r.group, r.binding))
    return allocated, collisions


def find_collisions(resources: Sequence[Resource]) -> list[BindingCollision]:
    """Find (group, binding) pairs claimed by more than one resource."""
    owners: dict[tuple[int, int], list[str]] = defaultdict(list)
    for resource in resources:
        owners[(resource.group, resource.binding)].append(resource.name)

    collisions = []
    for (group, binding), names in sorted(owners.items()):
        if len(names) > 1:
            logger.warning(
                f"Duplicate binding ({binding}) in group {group}: {', '.join(names)}"
            )
            collisions.append(BindingCollision(group, binding, tuple(names)))
    return collisions
