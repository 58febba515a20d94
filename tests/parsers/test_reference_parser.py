import pytest

from msl2wgsl.errors import UnresolvableCategoryError
from msl2wgsl.models import ResourceCategory
from msl2wgsl.parsers.reference import ReferenceParser, resource_category


class TestResourceCategory:
    """Test cases for reference category inference."""

    @pytest.mark.parametrize(
        "wgsl_type, text, expected",
        [
            ("array<f32>", "var<storage, read> b: array<f32>", ResourceCategory.STORAGE),
            ("Params", "var<uniform> u: Params", ResourceCategory.UNIFORM),
            ("sampler", "var s: sampler", ResourceCategory.SAMPLER),
            ("texture_2d<f32>", "var t: texture_2d<f32>", ResourceCategory.TEXTURE),
            (
                "texture_storage_2d<rgba8unorm, write>",
                "var t: texture_storage_2d<rgba8unorm, write>",
                ResourceCategory.TEXTURE,
            ),
        ],
    )
    def test_categories(self, wgsl_type, text, expected):
        """Test each resource category."""
        assert resource_category(wgsl_type, text) == expected

    def test_unresolvable(self):
        """Test a type that matches no category."""
        with pytest.raises(UnresolvableCategoryError):
            resource_category("f32", "var x: f32")


class TestReferenceParser:
    """Test cases for reference declarations."""

    def test_storage_reference(self, parse_declarations):
        """Test a reference to another node's buffer."""
        code = """
        @ref(simulation.particles) var<storage, read> particles: array<vec4<f32>>;
        fn main() { let p = particles[0]; }
        """

        (reference,) = parse_declarations(ReferenceParser(), code)

        assert reference.name == "particles"
        assert reference.target_node == "simulation"
        assert reference.target_resource == "particles"
        assert reference.wgsl_type == "array<vec4<f32>>"
        assert reference.category is ResourceCategory.STORAGE
        assert reference.access == "read"
        assert reference.used_in_body
        assert reference.wildcards == frozenset()

    def test_texture_reference(self, parse_declarations):
        """Test a reference to another node's texture."""
        code = "@group(1) @ref(blur.output) var source: texture_2d<f32>;"

        (reference,) = parse_declarations(ReferenceParser(), code)

        assert reference.category is ResourceCategory.TEXTURE
        assert reference.group == 1
        assert reference.access is None

    def test_templated_uniform_reference(self, parse_declarations):
        """Test that a templated uniform type is kept whole."""
        code = "@ref(node.params) var<uniform> params: array<vec4<f32>, 4>;"

        (reference,) = parse_declarations(ReferenceParser(), code)

        assert reference.name == "params"
        assert reference.wgsl_type == "array<vec4<f32>, 4>"
        assert reference.category is ResourceCategory.UNIFORM

    @pytest.mark.parametrize(
        "code, message",
        [
            ("@ref(just_a_name) var t: texture_2d<f32>;", "Invalid reference format"),
            ("@ref(a.b.c) var t: texture_2d<f32>;", "Invalid reference format"),
            ("@ref() var t: texture_2d<f32>;", "Missing reference parameter"),
            ("@ref(a.b) var x: f32;", "Unable to determine resource category"),
            ("@ref(a.b) let x = 1;", "Invalid variable declaration syntax"),
        ],
    )
    def test_invalid_references(self, parse_declarations, log_messages, code, message):
        """Test the errors reported for invalid references."""
        assert parse_declarations(ReferenceParser(), code) == []
        assert any(message in logged for logged in log_messages)
