import pytest

from msl2wgsl.errors import ValidationError
from msl2wgsl.type_sizes import component_count, get_wgsl_type_size, vector_scalar


class TestGetWgslTypeSize:
    """Test cases for WGSL type sizes."""

    @pytest.mark.parametrize(
        "type_name, expected",
        [
            ("f32", 4),
            ("u32", 4),
            ("f16", 2),
            ("bool", 1),
            ("vec2<f32>", 8),
            ("vec3<f32>", 12),
            ("vec4<u32>", 16),
            ("vec3f", 12),
            ("vec2h", 4),
            ("mat4x4<f32>", 64),
            ("mat3x2f", 24),
            ("mat2x2h", 8),
            ("array<f32, 4>", 16),
            ("array<vec4<f32>>", 16),
            ("array<vec2<f32>, 3>", 24),
        ],
    )
    def test_builtin_types(self, type_name, expected):
        """Test scalars, vectors, matrices and arrays."""
        assert get_wgsl_type_size(type_name) == expected

    def test_named_struct(self):
        """Test structs looked up by name, including nested structs."""
        structs = {
            "Light": "position: vec3<f32>, intensity: f32",
            "Scene": "lights: array<Light, 2>, count: u32",
        }

        assert get_wgsl_type_size("Light", structs) == 16
        assert get_wgsl_type_size("Scene", structs) == 36

    def test_inline_struct(self):
        """Test inline struct types."""
        assert get_wgsl_type_size("struct P { a: vec2<f32>, b: i32 }") == 12

    def test_unknown_type(self):
        """Test that unknown types are rejected."""
        with pytest.raises(ValidationError, match="Unknown type"):
            get_wgsl_type_size("Missing")


class TestComponents:
    """Test cases for scalar and vector component helpers."""

    @pytest.mark.parametrize(
        "type_name, count, scalar",
        [
            ("f32", 1, "f32"),
            ("vec2<f32>", 2, "f32"),
            ("vec3i", 3, "i32"),
            ("vec4<u32>", 4, "u32"),
            ("mat2x2<f32>", None, None),
        ],
    )
    def test_component_count_and_scalar(self, type_name, count, scalar):
        """Test component counts and scalar types of scalars and vectors."""
        assert component_count(type_name) == count
        assert vector_scalar(type_name) == scalar
