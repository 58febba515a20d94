"""
Arithmetic and wildcard expression evaluator.

Decorator parameters such as ``@size(info.resolution.x * 3)`` are evaluated
here. The grammar supports integer and decimal literals, ``+ - * /`` with the
usual precedence, unary signs, parentheses and wildcard references of the
form ``<prefix><name>`` followed by optional ``[n]`` / ``[row][col]`` index
accessors and an optional ``.xyzw`` / ``.rgba`` swizzle.

A comma-separated expression evaluates each segment independently, one or
more output components per segment. When a segment references a wildcard
that yields several components, the segment is evaluated once per component
index and yields one value per component (``info.resolution * 2`` with a
two-component wildcard yields two values). This is a broadcast of a scalar
expression, not vector arithmetic.
"""

import math
import re
from collections.abc import Iterable
from functools import lru_cache

from lark import Lark, Token, Transformer, Tree, v_args
from lark.exceptions import UnexpectedInput, VisitError

from msl2wgsl.constants import (
    DEFAULT_WILDCARD_PREFIX,
    MAX_COMPONENTS,
    SWIZZLE_COMPONENTS,
)
from msl2wgsl.decorators import split_top_level
from msl2wgsl.errors import (
    EvaluationError,
    MslError,
    MslSyntaxError,
    UnknownWildcardError,
)
from msl2wgsl.models import Number, Wildcard

expression_grammar = r"""
    ?start: sum

    ?sum: product
        | sum "+" product   -> add
        | sum "-" product   -> sub

    ?product: unary
        | product "*" unary -> mul
        | product "/" unary -> div

    ?unary: atom
        | "-" unary         -> neg
        | "+" unary         -> pos

    ?atom: NUMBER           -> number
        | wildcard
        | "(" sum ")"

    wildcard: WILDCARD index* swizzle?
    index: "[" NUMBER "]"
    swizzle: SWIZZLE

    WILDCARD: /%(prefix)s[A-Za-z_]\w*/
    SWIZZLE: /\.[xyzwrgba]{1,4}(?!\w)/
    NUMBER: /(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?/

    %%import common.WS
    %%ignore WS
"""


@lru_cache(maxsize=None)
def _parser(prefix: str) -> Lark:
    grammar = expression_grammar % {"prefix": re.escape(prefix).replace("/", r"\/")}
    return Lark(grammar, parser="lalr")


def referenced_wildcards(expression: str, prefix: str = DEFAULT_WILDCARD_PREFIX) -> set[str]:
    """Names of the wildcards an expression references, without the prefix."""
    return set(re.findall(rf"{re.escape(prefix)}([A-Za-z_]\w*)", expression))


def evaluate(
    expression: str,
    wildcards: Iterable[Wildcard] = (),
    prefix: str = DEFAULT_WILDCARD_PREFIX,
) -> list[Number]:
    """Evaluate an expression to one to four numbers.

    Args:
        expression: Comma-separated arithmetic expression
        wildcards: Wildcards available to the expression; values are read now
        prefix: Token prefix of wildcard references

    Returns:
        The evaluated components

    Raises:
        MslSyntaxError: Malformed expression, unbalanced parentheses or
            disallowed characters
        UnknownWildcardError: Reference to a wildcard that was not provided
        EvaluationError: Non-finite result, bad accessor or too many components
    """
    values = {wildcard.name: list(wildcard.value) for wildcard in wildcards}
    segments = split_top_level(expression, ",")
    if not segments or any(not segment for segment in segments):
        raise MslSyntaxError(f"Empty expression segment in '{expression}'")

    results: list[Number] = []
    for segment in segments:
        results.extend(_evaluate_segment(segment, values, prefix))

    if len(results) > MAX_COMPONENTS:
        raise EvaluationError(
            f"Expression '{expression}' yields {len(results)} components, "
            f"at most {MAX_COMPONENTS} are allowed"
        )
    return results


def _evaluate_segment(
    segment: str, values: dict[str, list[Number]], prefix: str
) -> list[Number]:
    try:
        tree = _parser(prefix).parse(segment)
    except UnexpectedInput as e:
        raise MslSyntaxError(f"Invalid expression '{segment}': {_describe(e)}") from e

    widths = {
        len(_wildcard_values(node, values, prefix))
        for node in tree.find_data("wildcard")
    } - {1}
    if len(widths) > 1:
        raise EvaluationError(
            f"Wildcards in '{segment}' have different component counts: "
            f"{sorted(widths)}"
        )
    width = widths.pop() if widths else 1

    results = []
    for component in range(width):
        try:
            result = _ComponentEvaluator(values, prefix, component).transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, MslError):
                raise e.orig_exc from None
            if isinstance(e.orig_exc, ZeroDivisionError):
                raise EvaluationError(f"Division by zero in '{segment}'") from None
            if isinstance(e.orig_exc, OverflowError):
                raise EvaluationError(f"Numeric overflow in '{segment}'") from None
            raise
        try:
            finite = math.isfinite(result)
        except OverflowError:
            raise EvaluationError(f"Numeric overflow in '{segment}'") from None
        if not finite:
            raise EvaluationError(f"Expression '{segment}' resulted in {result}")
        results.append(result)
    return results


def _describe(error: UnexpectedInput) -> str:
    if hasattr(error, "char"):
        return f"unexpected character '{error.char}' at column {error.column}"
    token = getattr(error, "token", None)
    if token is None or token.type in ("$END", "<EOF>") or not str(token):
        return "unexpected end of expression (unbalanced parentheses?)"
    return f"unexpected '{token}' at column {error.column}"


def _wildcard_values(
    node: Tree, values: dict[str, list[Number]], prefix: str
) -> list[Number]:
    """Resolve a wildcard reference node, applying its accessors."""
    name_token, *accessors = node.children
    name = str(name_token)[len(prefix) :]
    if name not in values:
        raise UnknownWildcardError(f"Unknown wildcard: {name}")
    value = values[name]

    indices = [_index(accessor) for accessor in accessors if accessor.data == "index"]
    if len(indices) > 2:
        raise EvaluationError(f"Too many index accessors on wildcard '{name}'")
    if len(indices) == 2:
        dim = math.isqrt(len(value))
        if dim * dim != len(value):
            raise EvaluationError(
                f"Wildcard '{name}' with {len(value)} components is not a square matrix"
            )
        row, col = indices
        if row >= dim or col >= dim:
            raise EvaluationError(f"Index [{row}][{col}] out of range for '{name}'")
        value = [value[row * dim + col]]
    elif len(indices) == 1:
        if indices[0] >= len(value):
            raise EvaluationError(f"Index [{indices[0]}] out of range for '{name}'")
        value = [value[indices[0]]]

    for accessor in accessors:
        if accessor.data != "swizzle":
            continue
        swizzled = []
        for char in str(accessor.children[0])[1:]:
            component = SWIZZLE_COMPONENTS[char]
            if component >= len(value):
                raise EvaluationError(
                    f"Swizzle '.{char}' out of range for '{name}' "
                    f"with {len(value)} components"
                )
            swizzled.append(value[component])
        value = swizzled
    return value


def _index(accessor: Tree) -> int:
    token = str(accessor.children[0])
    if not token.isdigit():
        raise EvaluationError(f"Index accessor must be an integer, got [{token}]")
    return int(token)


class _ComponentEvaluator(Transformer):
    """Evaluate a parsed segment for one broadcast component index."""

    def __init__(self, values: dict[str, list[Number]], prefix: str, component: int):
        super().__init__()
        self.values = values
        self.prefix = prefix
        self.component = component

    def number(self, items: list[Token]) -> Number:
        token = str(items[0])
        return int(token) if token.isdigit() else float(token)

    def add(self, items: list[Number]) -> Number:
        return items[0] + items[1]

    def sub(self, items: list[Number]) -> Number:
        return items[0] - items[1]

    def mul(self, items: list[Number]) -> Number:
        return items[0] * items[1]

    def div(self, items: list[Number]) -> Number:
        return items[0] / items[1]

    def neg(self, items: list[Number]) -> Number:
        return -items[0]

    def pos(self, items: list[Number]) -> Number:
        return items[0]

    @v_args(tree=True)
    def wildcard(self, tree: Tree) -> Number:
        resolved = _wildcard_values(tree, self.values, self.prefix)
        return resolved[self.component] if len(resolved) > 1 else resolved[0]
