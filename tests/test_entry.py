import pytest

from msl2wgsl.entry import (
    detect_shader_kind,
    find_calls,
    parse_compute_metadata,
    parse_fragment_metadata,
)
from msl2wgsl.errors import MslError, ShaderKindConflictError, ValidationError
from msl2wgsl.models import ParserConfig, ShaderKind, TextureResource
from msl2wgsl.parsers import ParseContext


def context_for(code, wildcards=(), config=None):
    return ParseContext.create(code, wildcards, config)


class TestDetectShaderKind:
    """Test cases for shader kind detection."""

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("@compute(100) fn main() {}", ShaderKind.COMPUTE),
            ("@fragment(@canvas) fn main() {}", ShaderKind.FRAGMENT),
            ("@compute @workgroup_size(8) fn main() {}", ShaderKind.RESOURCE),
            ("var<private> x: f32;", ShaderKind.RESOURCE),
        ],
    )
    def test_kinds(self, code, expected):
        """Test each shader kind."""
        assert detect_shader_kind(code) == expected

    def test_conflict(self):
        """Test that compute and fragment cannot be combined."""
        code = "@compute(1) fn a() {}\n@fragment(out) fn b() {}"

        with pytest.raises(ShaderKindConflictError) as exc_info:
            detect_shader_kind(code)
        assert exc_info.value.line == 2

    def test_find_calls_offsets(self):
        """Test that invocations are located in the full source."""
        code = "x @resolve(a) y @resolve(b)"

        calls = find_calls(code, "resolve")

        assert [(call.argument, code[call.start : call.end]) for call in calls] == [
            ("a", "@resolve(a)"),
            ("b", "@resolve(b)"),
        ]


class TestComputeMetadata:
    """Test cases for compute entry metadata."""

    @pytest.mark.parametrize(
        "decorators, dims, workgroup, threads",
        [
            ("@compute(100)", 1, (64, 1, 1), (100, 1, 1)),
            ("@compute(32, 16)", 2, (8, 8, 1), (32, 16, 1)),
            ("@compute(4, 4, 4)", 3, (4, 4, 4), (4, 4, 4)),
            ("@compute(info.resolution)", 2, (8, 8, 1), (1920, 1080, 1)),
            ("@compute(64, 64) @workgroup_size(16)", 2, (16, 1, 1), (64, 64, 1)),
        ],
    )
    def test_layouts(self, wildcards, decorators, dims, workgroup, threads):
        """Test dimensionality, default and explicit workgroup sizes."""
        metadata = parse_compute_metadata(context_for(f"{decorators} fn main() {{}}", wildcards))

        assert metadata.dimensionality == dims
        assert metadata.workgroup_size == workgroup
        assert metadata.thread_count == threads

    def test_workgroup_size_exceeds_dimensions(self):
        """Test that @workgroup_size cannot have more components than @compute."""
        code = "\n@compute(64) @workgroup_size(8, 8) fn main() {}"

        with pytest.raises(ValidationError, match="more dimensions") as exc_info:
            parse_compute_metadata(context_for(code))
        assert exc_info.value.line == 2

    @pytest.mark.parametrize("count", ["0", "1.5", "info.unknown"])
    def test_invalid_thread_count(self, wildcards, count):
        """Test thread counts that do not resolve to positive integers."""
        with pytest.raises(MslError):
            parse_compute_metadata(context_for(f"@compute({count}) fn main() {{}}", wildcards))


class TestFragmentMetadata:
    """Test cases for fragment entry metadata."""

    def test_texture_target(self):
        """Test rendering into a named texture with a resolve target."""
        code = "@fragment(msaa) @resolve(scene) fn main() {}"

        metadata = parse_fragment_metadata(context_for(code), [])

        assert metadata.target_view == "msaa"
        assert metadata.resolve_target == "scene"
        assert not metadata.is_canvas

    def test_canvas_with_size(self, wildcards):
        """Test a canvas sized by a wildcard."""
        code = "@fragment(@canvas(info.resolution)) fn main() {}"

        metadata = parse_fragment_metadata(context_for(code, wildcards), [])

        assert metadata.is_canvas
        assert metadata.target_view == "canvas"
        assert metadata.canvas_size == (1920, 1080)

    def test_bare_canvas_uses_viewport(self, config):
        """Test that a bare @canvas takes the viewport size."""
        metadata = parse_fragment_metadata(
            context_for("@fragment(@canvas) fn main() {}", config=config), []
        )

        assert metadata.canvas_size == (800, 600)

    def test_bare_canvas_without_viewport(self):
        """Test that a bare @canvas needs a viewport provider."""
        with pytest.raises(ValidationError, match="viewport"):
            parse_fragment_metadata(context_for("@fragment(@canvas) fn main() {}"), [])

    @pytest.mark.parametrize(
        "canvas, message",
        [
            ("@canvas(640)", "exactly 2 dimensions"),
            ("@canvas(0, 480)", "Canvas width must be greater than 0"),
            ("@canvas(640, 20000)", "Height exceeds maximum allowed size (16384)"),
        ],
    )
    def test_invalid_canvas(self, canvas, message):
        """Test the canvas size checks."""
        with pytest.raises(ValidationError) as exc_info:
            parse_fragment_metadata(context_for(f"@fragment({canvas}) fn main() {{}}"), [])
        assert message in exc_info.value.message
        assert exc_info.value.message.startswith("Invalid @canvas parameters")

    def test_max_canvas_size_is_configurable(self):
        """Test a custom canvas size limit."""
        config = ParserConfig(max_canvas_size=512)

        with pytest.raises(ValidationError, match="Width exceeds"):
            parse_fragment_metadata(
                context_for("@fragment(@canvas(1024, 256)) fn main() {}", config=config), []
            )

    def test_resolve_with_canvas(self):
        """Test that a canvas target cannot have a resolve target."""
        code = "@fragment(@canvas(4, 4)) @resolve(scene) fn main() {}"

        with pytest.raises(ValidationError, match="Cannot specify @resolve"):
            parse_fragment_metadata(context_for(code), [])

    def test_target_used_in_body(self):
        """Test that the shader cannot sample its own render target."""
        target = TextureResource(
            name="scene", size=(4, 4), format="rgba8unorm",
            texture_type="texture_2d<f32>", used_in_body=True,
        )

        with pytest.raises(ValidationError, match="Cannot render to texture 'scene'"):
            parse_fragment_metadata(context_for("@fragment(scene) fn main() {}"), [target])

    def test_invalid_target(self):
        """Test that the target must be an identifier."""
        with pytest.raises(ValidationError, match="target texture"):
            parse_fragment_metadata(context_for("@fragment(1 + 2) fn main() {}"), [])
