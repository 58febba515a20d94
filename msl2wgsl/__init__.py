from msl2wgsl.diff import diff_shader_metadata
from msl2wgsl.errors import (
    MslError,
    MslSyntaxError,
    ShaderKindConflictError,
    ShaderParseError,
    UnknownWildcardError,
    ValidationError,
)
from msl2wgsl.expression import evaluate
from msl2wgsl.models import (
    BufferResource,
    ComputeMetadata,
    FixedViewport,
    FragmentMetadata,
    ParserConfig,
    ReferenceResource,
    ResourceType,
    SamplerResource,
    ShaderKind,
    ShaderMetadata,
    ShaderMetadataDiff,
    TextureResource,
    UniformResource,
    Wildcard,
)
from msl2wgsl.shader import parse_shader
from msl2wgsl.type_sizes import get_wgsl_type_size

__version__ = "0.1.0"


__all__ = [
    "parse_shader",
    "diff_shader_metadata",
    "evaluate",
    "get_wgsl_type_size",
    "Wildcard",
    "ParserConfig",
    "FixedViewport",
    "ShaderKind",
    "ShaderMetadata",
    "ShaderMetadataDiff",
    "ComputeMetadata",
    "FragmentMetadata",
    "ResourceType",
    "TextureResource",
    "BufferResource",
    "UniformResource",
    "SamplerResource",
    "ReferenceResource",
    "MslError",
    "MslSyntaxError",
    "ValidationError",
    "UnknownWildcardError",
    "ShaderKindConflictError",
    "ShaderParseError",
]
