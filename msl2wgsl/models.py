"""
Data models for the MSL compiler.

This module contains the dataclass definitions shared by the parsers, the
binding allocator, the code emitter and the diff engine: wildcards, the
resource variants, entry-point metadata, the parse result and its diff.

Resources and metadata are frozen: every parse produces fresh values and
nothing downstream mutates them. Structural equality per variant comes from
the dataclass machinery.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Protocol

from msl2wgsl.constants import (
    DEFAULT_MAX_CANVAS_SIZE,
    DEFAULT_WILDCARD_PREFIX,
    MAX_COMPONENTS,
    UNASSIGNED_BINDING,
    WGSL_VECTOR_TYPES,
)

Number = int | float


class ResourceType(Enum):
    """Kinds of GPU-binding declarations."""

    TEXTURE = "texture"
    BUFFER = "buffer"
    UNIFORM = "uniform"
    SAMPLER = "sampler"
    REF = "ref"


class ShaderKind(Enum):
    """Kinds of shader modules."""

    COMPUTE = "compute"
    FRAGMENT = "fragment"
    RESOURCE = "resource"


class ResourceCategory(Enum):
    """Category of the resource a reference points at."""

    TEXTURE = "texture"
    STORAGE = "storage"
    UNIFORM = "uniform"
    SAMPLER = "sampler"


@dataclass
class Wildcard:
    """Named numeric vector substituted into expressions at parse time.

    Wildcards are owned and updated by the caller; the compiler only reads
    ``value`` when a parse runs.

    Attributes:
        name: Name used after the wildcard prefix, e.g. ``resolution``
        value: One to four components
    """

    name: str
    value: list[Number]

    def __post_init__(self) -> None:
        self.value = list(self.value)
        self._check(self.value)

    def set(self, *values: Number) -> None:
        """Replace the wildcard value."""
        self._check(values)
        self.value = list(values)

    @property
    def wgsl_type(self) -> str:
        """WGSL type matching the number of components."""
        return WGSL_VECTOR_TYPES[len(self.value)]

    @staticmethod
    def _check(values: "list[Number] | tuple[Number, ...]") -> None:
        if not 1 <= len(values) <= MAX_COMPONENTS:
            raise ValueError(
                f"Wildcard value must have 1-{MAX_COMPONENTS} components, "
                f"got {len(values)}"
            )


@dataclass(frozen=True, kw_only=True)
class Resource:
    """Fields common to every parsed resource declaration.

    Attributes:
        name: WGSL variable name
        group: Bind group index
        binding: Binding index, -1 while unassigned
        declaration_index: Position of the declaration in source order
        used_in_body: Whether a function body references the variable
        wildcards: Names of the wildcards the declaration depends on
    """

    resource_type: ClassVar[ResourceType]

    name: str
    group: int = 0
    binding: int = UNASSIGNED_BINDING
    declaration_index: int = 0
    used_in_body: bool = False
    wildcards: frozenset[str] = frozenset()

    @property
    def identity(self) -> tuple[str, int, ResourceType]:
        """Identity of the resource across two parses of the same shader."""
        return (self.name, self.group, self.resource_type)


@dataclass(frozen=True, kw_only=True)
class TextureResource(Resource):
    """Texture or storage texture.

    Attributes:
        size: One to three positive integer dimensions
        format: Texel format, e.g. ``rgba8unorm``
        texture_type: Full WGSL texture type, e.g. ``texture_2d<f32>``
    """

    resource_type: ClassVar[ResourceType] = ResourceType.TEXTURE

    size: tuple[int, ...]
    format: str
    texture_type: str


@dataclass(frozen=True, kw_only=True)
class BufferResource(Resource):
    """Storage buffer.

    Attributes:
        element_count: Resolved @size value
        element_type: WGSL backing type, ``array<T>`` or an inline struct
        access: ``read`` or ``read_write``
        stride: Optional element stride in bytes
    """

    resource_type: ClassVar[ResourceType] = ResourceType.BUFFER

    element_count: int
    element_type: str
    access: str
    stride: int | None = None


@dataclass(frozen=True, kw_only=True)
class UniformResource(Resource):
    """Uniform buffer backed by a struct declared in the same source.

    Attributes:
        struct_type: Name of the struct type
        fields: Read-only default value per struct field, in declaration order
        byte_size: Sum of the field sizes
    """

    resource_type: ClassVar[ResourceType] = ResourceType.UNIFORM

    struct_type: str
    fields: Mapping[str, tuple[Number, ...]] = field(hash=False)
    byte_size: int

    def __post_init__(self) -> None:
        frozen = {name: tuple(values) for name, values in self.fields.items()}
        object.__setattr__(self, "fields", MappingProxyType(frozen))


@dataclass(frozen=True, kw_only=True)
class SamplerResource(Resource):
    """Sampler. Every parameter is optional."""

    resource_type: ClassVar[ResourceType] = ResourceType.SAMPLER

    address_mode_u: str | None = None
    address_mode_v: str | None = None
    address_mode_w: str | None = None
    mag_filter: str | None = None
    min_filter: str | None = None
    mipmap_filter: str | None = None
    lod_min_clamp: Number | None = None
    lod_max_clamp: Number | None = None
    compare: str | None = None
    max_anisotropy: Number | None = None


@dataclass(frozen=True, kw_only=True)
class ReferenceResource(Resource):
    """Binding to a resource owned by another shader node.

    A reference never allocates a GPU object; the target is resolved when the
    shader graph is composed.

    Attributes:
        target_node: Name of the node owning the resource
        target_resource: Name of the resource on that node
        wgsl_type: Local WGSL type of the variable
        category: Kind of the referenced resource
        access: Storage access for storage references
    """

    resource_type: ClassVar[ResourceType] = ResourceType.REF

    target_node: str
    target_resource: str
    wgsl_type: str
    category: ResourceCategory
    access: str | None = None


@dataclass(frozen=True)
class ComputeMetadata:
    """Compute entry point layout.

    Attributes:
        dimensionality: Number of components given to @compute (1-3)
        workgroup_size: Workgroup size padded to three components
        thread_count: Total thread count padded to three components
    """

    dimensionality: int
    workgroup_size: tuple[int, int, int]
    thread_count: tuple[int, int, int]


@dataclass(frozen=True)
class FragmentMetadata:
    """Fragment entry point target.

    Attributes:
        target_view: Name of the target texture, or ``canvas``
        resolve_target: Optional multisample resolve texture
        is_canvas: Whether the shader renders to the canvas
        canvas_size: Canvas width and height when rendering to the canvas
    """

    target_view: str
    resolve_target: str | None = None
    is_canvas: bool = False
    canvas_size: tuple[int, int] | None = None


@dataclass(frozen=True)
class BindingCollision:
    """Two or more resources claiming the same (group, binding) pair.

    Collisions are diagnostics only; allocation always completes.
    """

    group: int
    binding: int
    names: tuple[str, ...]


@dataclass(frozen=True)
class ShaderMetadata:
    """Result of parsing one MSL source.

    Attributes:
        kind: Compute, fragment or resource-only module
        kind_metadata: Entry point metadata, None for resource-only modules
        resources: Resources ordered by (group, binding)
        code: Transformed WGSL source
        diagnostics: Non-fatal binding collisions
    """

    kind: ShaderKind
    kind_metadata: ComputeMetadata | FragmentMetadata | None
    resources: tuple[Resource, ...]
    code: str
    diagnostics: tuple[BindingCollision, ...] = ()

    def get_resource(self, name: str) -> Resource | None:
        """Find a resource by variable name."""
        for resource in self.resources:
            if resource.name == name:
                return resource
        return None


@dataclass
class ShaderMetadataDiff:
    """Resource delta between two parses of the same shader.

    Attributes:
        requires_full_rebuild: Shader kind or entry point metadata changed
        removed: Resources to tear down
        added: Resources to create
        reordered: Resources whose binding slot changed and nothing else
        code_changed: Whether the transformed WGSL text differs
    """

    requires_full_rebuild: bool = False
    removed: list[Resource] = field(default_factory=list)
    added: list[Resource] = field(default_factory=list)
    reordered: list[Resource] = field(default_factory=list)
    code_changed: bool = False

    @property
    def is_empty(self) -> bool:
        """Whether nothing has to be rebuilt, recreated or rebound."""
        return not (
            self.requires_full_rebuild
            or self.removed
            or self.added
            or self.reordered
        )


class ViewportSizeProvider(Protocol):
    """Capability supplying the default canvas size for a bare @canvas."""

    def viewport_size(self) -> tuple[int, int]:
        """Return the current viewport width and height in pixels."""
        ...


@dataclass(frozen=True)
class FixedViewport:
    """ViewportSizeProvider returning a constant size."""

    width: int
    height: int

    def viewport_size(self) -> tuple[int, int]:
        """Return the configured width and height."""
        return (self.width, self.height)


@dataclass(frozen=True)
class ParserConfig:
    """Configuration of a parse.

    Attributes:
        wildcard_prefix: Token prefix marking wildcard references
        viewport: Provider of the default canvas size
        max_canvas_size: Upper bound of each canvas dimension
    """

    wildcard_prefix: str = DEFAULT_WILDCARD_PREFIX
    viewport: ViewportSizeProvider | None = None
    max_canvas_size: int = DEFAULT_MAX_CANVAS_SIZE
