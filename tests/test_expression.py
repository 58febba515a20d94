import pytest

from msl2wgsl.errors import EvaluationError, MslSyntaxError, UnknownWildcardError
from msl2wgsl.expression import evaluate, referenced_wildcards
from msl2wgsl.models import Wildcard


class TestArithmetic:
    """Test cases for plain arithmetic expressions."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("1", [1]),
            ("2.5", [2.5]),
            ("1 + 2 * 3", [7]),
            ("(1 + 2) * 3", [9]),
            ("10 - 4 - 3", [3]),
            ("8 / 2 / 2", [2.0]),
            ("-3 + 5", [2]),
            ("--2", [2]),
            ("1.5e2", [150.0]),
        ],
    )
    def test_precedence_and_literals(self, expression, expected):
        """Test operator precedence, associativity and number literals."""
        assert evaluate(expression) == expected

    def test_comma_separated_segments(self):
        """Test that each comma-separated segment yields its own component."""
        assert evaluate("1, 2 + 3, (4)") == [1, 5, 4]

    def test_commas_inside_parentheses_do_not_split(self):
        """Test that segments are only split at the top level."""
        with pytest.raises(MslSyntaxError):
            evaluate("(1, 2)")

    def test_unbalanced_parentheses(self):
        """Test that unbalanced parentheses are syntax errors."""
        with pytest.raises(MslSyntaxError):
            evaluate("(1 + 2")

    def test_disallowed_characters(self):
        """Test that characters outside the grammar are syntax errors."""
        with pytest.raises(MslSyntaxError, match="unexpected"):
            evaluate("2 ^ 3")

    def test_empty_segment(self):
        """Test that an empty segment is a syntax error."""
        with pytest.raises(MslSyntaxError):
            evaluate("1,,2")

    def test_division_by_zero(self):
        """Test that dividing by zero is an evaluation error."""
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate("1 / 0")

    def test_too_many_components(self):
        """Test that more than four components are rejected."""
        with pytest.raises(EvaluationError):
            evaluate("1, 2, 3, 4, 5")

    @pytest.mark.parametrize("expression", ["1" + "0" * 400, "1" + "0" * 400 + " * 1.5"])
    def test_numeric_overflow(self, expression):
        """Test that numbers too large for a float are evaluation errors."""
        with pytest.raises(EvaluationError, match="Numeric overflow"):
            evaluate(expression)


class TestWildcards:
    """Test cases for wildcard substitution."""

    def test_swizzled_component(self, wildcards):
        """Test a single swizzled component inside an expression."""
        assert evaluate("info.resolution.y * 3", wildcards) == [3240]

    def test_mixed_swizzle(self, wildcards):
        """Test swizzles with repeated and rgba components."""
        assert evaluate("info.color.bgr", wildcards) == [0.3, 0.2, 0.1]
        assert evaluate("info.resolution.yx", wildcards) == [1080, 1920]

    def test_broadcast(self, wildcards):
        """Test that a multi-component wildcard evaluates once per component."""
        assert evaluate("info.resolution / 2", wildcards) == [960.0, 540.0]
        assert evaluate("info.resolution.xy * info.time", wildcards) == [960.0, 540.0]

    def test_broadcast_with_other_segments(self, wildcards):
        """Test broadcast segments mixed with scalar segments."""
        assert evaluate("info.resolution, 1", wildcards) == [1920, 1080, 1]

    def test_broadcast_width_mismatch(self, wildcards):
        """Test that wildcards of different widths cannot be combined."""
        with pytest.raises(EvaluationError, match="different component counts"):
            evaluate("info.resolution + info.color.rgb", wildcards)

    def test_index_accessors(self, wildcards):
        """Test [n] and [row][col] accessors."""
        assert evaluate("info.color[3]", wildcards) == [1.0]
        assert evaluate("info.transform[1][0]", wildcards) == [3]

    def test_matrix_index_needs_square_wildcard(self, wildcards):
        """Test that [row][col] needs a square number of components."""
        with pytest.raises(EvaluationError, match="square"):
            evaluate("info.resolution[0][1]", wildcards)

    def test_swizzle_out_of_range(self, wildcards):
        """Test that swizzling past the last component fails."""
        with pytest.raises(EvaluationError):
            evaluate("info.resolution.z", wildcards)

    def test_unknown_wildcard(self, wildcards):
        """Test that unknown wildcard names are reported."""
        with pytest.raises(UnknownWildcardError, match="missing"):
            evaluate("info.missing * 2", wildcards)

    def test_values_are_read_at_call_time(self):
        """Test that a wildcard update is seen by the next evaluation."""
        scale = Wildcard("scale", [2])
        assert evaluate("info.scale * 4", [scale]) == [8]
        scale.set(3)
        assert evaluate("info.scale * 4", [scale]) == [12]

    def test_custom_prefix(self):
        """Test a wildcard prefix other than the default."""
        assert evaluate("wc.size.x + 1", [Wildcard("size", [4, 5])], prefix="wc.") == [5]

    def test_referenced_wildcards(self):
        """Test listing the wildcards an expression depends on."""
        assert referenced_wildcards("info.resolution.x * info.time + 2") == {
            "resolution",
            "time",
        }


class TestWildcardModel:
    """Test cases for the Wildcard dataclass."""

    def test_wgsl_type(self):
        """Test the WGSL type derived from the component count."""
        assert Wildcard("t", [1]).wgsl_type == "f32"
        assert Wildcard("r", [1, 2]).wgsl_type == "vec2<f32>"
        assert Wildcard("c", [1, 2, 3, 4]).wgsl_type == "vec4<f32>"

    @pytest.mark.parametrize("value", [[], [1, 2, 3, 4, 5]])
    def test_component_count_is_checked(self, value):
        """Test that wildcards hold one to four components."""
        with pytest.raises(ValueError):
            Wildcard("bad", value)
