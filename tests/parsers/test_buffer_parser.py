import pytest

from msl2wgsl.errors import ValidationError
from msl2wgsl.parsers.buffer import BufferParser, check_backing_type


class TestBackingType:
    """Test cases for storage buffer backing types."""

    def test_array_and_struct(self):
        """Test the two accepted backing type shapes."""
        assert check_backing_type("array<f32>") == "array<f32>"
        assert check_backing_type("struct P { a: f32 }") == "struct P { a: f32 }"

    def test_empty_struct(self):
        """Test that an inline struct needs at least one field."""
        with pytest.raises(ValidationError, match="at least one field"):
            check_backing_type("struct P { }")

    def test_other_types(self):
        """Test that scalar backing types are rejected."""
        with pytest.raises(ValidationError):
            check_backing_type("f32")


class TestBufferParser:
    """Test cases for buffer declarations."""

    def test_parse_buffer(self, parse_declarations):
        """Test a read-write array buffer."""
        code = "@buffer(@size(100)) var<storage, read_write> particles: array<vec4<f32>>;"

        (buffer,) = parse_declarations(BufferParser(), code)

        assert buffer.name == "particles"
        assert buffer.element_count == 100
        assert buffer.element_type == "array<vec4<f32>>"
        assert buffer.access == "read_write"
        assert buffer.stride is None

    def test_size_from_wildcard(self, parse_declarations):
        """Test a buffer sized by a wildcard expression."""
        code = "@buffer(@size(info.resolution.x * info.resolution.y)) var<storage, read> px: array<u32>;"

        (buffer,) = parse_declarations(BufferParser(), code)

        assert buffer.element_count == 1920 * 1080
        assert buffer.access == "read"
        assert buffer.wildcards == {"resolution"}

    def test_inline_struct(self, parse_declarations):
        """Test a buffer backed by an inline struct."""
        code = "@buffer(@size(1)) var<storage, read> state: struct State { count: u32; total: f32 };"

        (buffer,) = parse_declarations(BufferParser(), code)

        assert buffer.element_type == "struct State { count: u32; total: f32 }"

    def test_structured_stride(self, parse_declarations, log_messages):
        """Test the size multiple rule of structured buffers."""
        code = """
        @buffer(@size(64) @stride(16)) var<storage, read> ok: array<structured>;
        @buffer(@size(60) @stride(16)) var<storage, read> bad: array<structured>;
        @buffer(@size(32)) var<storage, read> marker: array<structured<8>>;
        """

        buffers = parse_declarations(BufferParser(), code)

        assert [(b.name, b.stride) for b in buffers] == [("ok", 16), ("marker", 8)]
        assert any(
            "Buffer size (60) must be a multiple of stride (16)" in message
            for message in log_messages
        )

    @pytest.mark.parametrize(
        "code, message",
        [
            ("@buffer(@size(0)) var<storage, read> b: array<f32>;", "greater than 0"),
            ("@buffer(@size(2.5)) var<storage, read> b: array<f32>;", "must be an integer"),
            ("@buffer(@size(1, 2)) var<storage, read> b: array<f32>;", "single value"),
            ("@buffer(@size(1)) var<storage, write> b: array<f32>;", "storage qualifier"),
            ("@buffer() var<storage, read> b: array<f32>;", "Missing @size"),
            ("@buffer(@size(1)) var<storage, read> b: f32;", "Invalid type declaration"),
        ],
    )
    def test_invalid_buffers(self, parse_declarations, log_messages, code, message):
        """Test the errors reported for invalid buffer declarations."""
        assert parse_declarations(BufferParser(), code) == []
        assert any(message in logged for logged in log_messages)
