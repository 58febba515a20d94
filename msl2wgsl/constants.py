"""
Constants and lookup tables for the MSL compiler.

This module contains the decorator vocabulary, the allow-lists used when
validating resource declarations, and the numeric tables shared by the
expression evaluator, the entry-point parser and the type size calculator.
"""

# Resource creator decorators. Each one starts a resource declaration.
TEXTURE = "texture"
BUFFER = "buffer"
UNIFORM = "uniform"
SAMPLER = "sampler"
REF = "ref"

CREATOR_DECORATORS: tuple[str, ...] = (TEXTURE, BUFFER, UNIFORM, SAMPLER, REF)

# Standard WGSL binding decorators, handled both implicitly and explicitly
GROUP = "group"
BINDING = "binding"

# Parameter decorators nested inside creator decorators
SIZE = "size"
FORMAT = "format"
STRIDE = "stride"

SAMPLER_ENUM_PARAMETERS: tuple[str, ...] = (
    "addressModeU",
    "addressModeV",
    "addressModeW",
    "magFilter",
    "minFilter",
    "mipmapFilter",
    "compare",
)

# Numeric sampler parameters with their inclusive (min, max) ranges
SAMPLER_NUMERIC_RANGES: dict[str, tuple[float, float]] = {
    "lodMinClamp": (0, 32),
    "lodMaxClamp": (0, 32),
    "maxAnisotropy": (1, 16),
}

# Entry point decorators
COMPUTE = "compute"
FRAGMENT = "fragment"
WORKGROUP_SIZE = "workgroup_size"
CANVAS = "canvas"
RESOLVE = "resolve"

# Every decorator that only exists in MSL and must not reach the WGSL output
MSL_DECORATORS: frozenset[str] = frozenset(
    {
        TEXTURE,
        BUFFER,
        UNIFORM,
        SAMPLER,
        REF,
        SIZE,
        FORMAT,
        STRIDE,
        CANVAS,
        RESOLVE,
        *SAMPLER_ENUM_PARAMETERS,
        *SAMPLER_NUMERIC_RANGES,
    }
)

VALID_TEXTURE_TYPES: tuple[str, ...] = (
    "texture_1d",
    "texture_2d",
    "texture_2d_array",
    "texture_3d",
    "texture_cube",
    "texture_cube_array",
    "texture_multisampled_2d",
    "texture_storage_1d",
    "texture_storage_2d",
    "texture_storage_2d_array",
    "texture_storage_3d",
    "texture_depth_2d",
    "texture_depth_2d_array",
    "texture_depth_cube",
    "texture_depth_cube_array",
    "texture_depth_multisampled_2d",
)

VALID_ADDRESS_MODES: tuple[str, ...] = ("repeat", "mirror-repeat", "clamp-to-edge")
VALID_FILTER_MODES: tuple[str, ...] = ("nearest", "linear")
VALID_COMPARE_FUNCTIONS: tuple[str, ...] = (
    "never",
    "less",
    "equal",
    "less-equal",
    "greater",
    "not-equal",
    "greater-equal",
    "always",
)

SAMPLER_ALLOWED_VALUES: dict[str, tuple[str, ...]] = {
    "addressModeU": VALID_ADDRESS_MODES,
    "addressModeV": VALID_ADDRESS_MODES,
    "addressModeW": VALID_ADDRESS_MODES,
    "magFilter": VALID_FILTER_MODES,
    "minFilter": VALID_FILTER_MODES,
    "mipmapFilter": VALID_FILTER_MODES,
    "compare": VALID_COMPARE_FUNCTIONS,
}

# Swizzle characters mapped to component indices
SWIZZLE_COMPONENTS: dict[str, int] = {
    "x": 0,
    "y": 1,
    "z": 2,
    "w": 3,
    "r": 0,
    "g": 1,
    "b": 2,
    "a": 3,
}
MAX_COMPONENTS = 4

# Default workgroup sizes keyed by compute dimensionality
DEFAULT_WORKGROUP_SIZES: dict[int, tuple[int, int, int]] = {
    1: (64, 1, 1),
    2: (8, 8, 1),
    3: (4, 4, 4),
}

DEFAULT_WILDCARD_PREFIX = "info."
DEFAULT_MAX_CANVAS_SIZE = 16384

# Binding value of a resource that still needs automatic assignment
UNASSIGNED_BINDING = -1

# Byte sizes of WGSL scalar types
SCALAR_SIZES: dict[str, int] = {
    "f32": 4,
    "i32": 4,
    "u32": 4,
    "f16": 2,
    "i16": 2,
    "u16": 2,
    "i8": 1,
    "u8": 1,
    "bool": 1,
}

# Shorthand suffixes of vecNx / matCxRx aliases
SHORTHAND_SCALARS: dict[str, str] = {
    "f": "f32",
    "i": "i32",
    "u": "u32",
    "h": "f16",
}

# Scalar types a uniform field default may target
UNIFORM_SCALARS: frozenset[str] = frozenset({"f32", "i32", "u32"})

WGSL_VECTOR_TYPES: dict[int, str] = {
    1: "f32",
    2: "vec2<f32>",
    3: "vec3<f32>",
    4: "vec4<f32>",
}
