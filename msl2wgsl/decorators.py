"""
Decorator and pattern library for MSL source.

This module recognizes the annotation syntax of MSL: ``@name`` and
``@name(...)`` decorator invocations with arbitrarily nested arguments,
top-level statements, resource declarations, WGSL variable declaration
shapes, struct definitions and function bodies.

Decorator arguments are matched with an explicit parenthesis counter instead
of regular expressions, so nested decorators such as
``@uniform(@color(0.5, (1 + 2) / 3))`` are always isolated as a whole.
"""

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from msl2wgsl.constants import CREATOR_DECORATORS

_DECORATOR_NAME = re.compile(r"@([A-Za-z_]\w*)")
_COMMENT = re.compile(r"/\*.*?\*/|//[^\n]*", re.DOTALL)
_FUNCTION_KEYWORD = re.compile(r"\bfn\s+[A-Za-z_]\w*")
_STRUCT_HEADER = re.compile(r"\bstruct\s+([A-Za-z_]\w*)\s*\{")
_FIELD = re.compile(r"^(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>.+)$", re.DOTALL)

OPENING = "([{"
CLOSING = ")]}"

# WGSL variable declaration shapes, one per resource kind
TEXTURE_VARIABLE = re.compile(
    r"\bvar\s+(?P<name>[A-Za-z_]\w*)\s*:\s*"
    r"(?P<type>texture_\w+(?:\s*<[^<>;]*>)?)"
)
STORAGE_VARIABLE = re.compile(
    r"\bvar\s*<\s*storage\s*,\s*(?P<access>read_write|read)\s*>\s*"
    r"(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>[^;{]+(?:\{[^}]*\})?)"
)
UNIFORM_VARIABLE = re.compile(
    r"\bvar\s*<\s*uniform\s*>\s*(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>[A-Za-z_]\w*)"
)
SAMPLER_VARIABLE = re.compile(
    r"\bvar\s+(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>sampler(?:_comparison)?)\b"
)
VARIABLE_NAME = re.compile(r"\bvar\b(?:\s*<[^<>;]*>)?\s*(?P<name>[A-Za-z_]\w*)\s*:")


@dataclass(frozen=True)
class DecoratorCall:
    """One ``@name`` or ``@name(...)`` invocation.

    Attributes:
        name: Decorator name without the ``@``
        argument: Text between the parentheses, None for a bare decorator
        start: Offset of the ``@`` in the scanned text
        end: Offset just past the closing parenthesis (or the name)
        balanced: False when the closing parenthesis is missing
    """

    name: str
    argument: str | None
    start: int
    end: int
    balanced: bool = True

    def children(self) -> list["DecoratorCall"]:
        """Decorators nested directly inside the argument."""
        if not self.argument:
            return []
        return scan_decorators(self.argument)


@dataclass(frozen=True)
class Statement:
    """A top-level statement of MSL source.

    Attributes:
        text: Statement text, including a trailing ``;`` when present
        start: Offset of the first character of the statement
    """

    text: str
    start: int


@dataclass(frozen=True)
class Declaration:
    """A statement that declares a resource.

    Attributes:
        kind: Creator decorator name (texture, buffer, uniform, sampler, ref)
        text: Declaration text
        line: 1-based line of the declaration start
        index: Position among all declarations, in source order
        creators: Every creator decorator found on the statement
    """

    kind: str
    text: str
    line: int
    index: int
    creators: tuple[str, ...]


def strip_comments(code: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping line numbers intact."""
    return _COMMENT.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), code)


def line_of(code: str, offset: int) -> int:
    """1-based line number of an offset."""
    return code.count("\n", 0, offset) + 1


def find_closing(text: str, open_index: int) -> int:
    """Find the bracket closing the one at ``open_index``.

    Args:
        text: Text to scan
        open_index: Index of an opening bracket

    Returns:
        Index of the matching closing bracket, or -1 if it is missing
    """
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char in OPENING:
            depth += 1
        elif char in CLOSING:
            depth -= 1
            if depth == 0:
                return index
    return -1


def scan_decorators(text: str) -> list[DecoratorCall]:
    """Scan the top-level decorator invocations of a text.

    Decorators nested inside another decorator's argument are not returned;
    use ``walk_decorators`` or ``DecoratorCall.children`` for those.
    """
    calls: list[DecoratorCall] = []
    position = 0
    while match := _DECORATOR_NAME.search(text, position):
        cursor = match.end()
        while cursor < len(text) and text[cursor] in " \t\r\n":
            cursor += 1

        if cursor < len(text) and text[cursor] == "(":
            close = find_closing(text, cursor)
            if close == -1:
                calls.append(
                    DecoratorCall(
                        match.group(1), text[cursor + 1 :], match.start(), len(text), False
                    )
                )
                break
            calls.append(
                DecoratorCall(
                    match.group(1), text[cursor + 1 : close], match.start(), close + 1
                )
            )
            position = close + 1
        else:
            calls.append(DecoratorCall(match.group(1), None, match.start(), match.end()))
            position = match.end()
    return calls


def walk_decorators(text: str) -> Iterator[DecoratorCall]:
    """Yield every decorator invocation, nested ones included, in text order."""
    for call in scan_decorators(text):
        yield call
        if call.argument:
            yield from walk_decorators(call.argument)


def find_decorator(text: str, name: str) -> DecoratorCall | None:
    """Find the first invocation of a decorator at any nesting depth."""
    for call in walk_decorators(text):
        if call.name == name:
            return call
    return None


def remove_decorators(text: str, should_remove: Callable[[DecoratorCall], bool]) -> str:
    """Remove decorator invocations, including their nested arguments.

    Removal is repeated until no matching invocation remains.

    Args:
        text: Source text
        should_remove: Predicate selecting the invocations to drop

    Returns:
        Text without the selected invocations
    """
    while True:
        calls = [call for call in scan_decorators(text) if should_remove(call)]
        if not calls:
            return text
        for call in reversed(calls):
            text = text[: call.start] + text[call.end :]


def split_top_level(text: str, separators: str = ",", angle: bool = False) -> list[str]:
    """Split text on separators that are not nested in brackets.

    Args:
        text: Text to split
        separators: Characters acting as separators
        angle: Whether ``<`` and ``>`` count as brackets

    Returns:
        Stripped segments; a trailing empty segment is dropped
    """
    opening = OPENING + ("<" if angle else "")
    closing = CLOSING + (">" if angle else "")
    segments: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char in opening:
            depth += 1
        elif char in closing:
            depth -= 1
        if char in separators and depth == 0:
            segments.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        segments.append(current.strip())
    return segments


def split_statements(code: str) -> list[Statement]:
    """Split source into top-level statements.

    A statement ends at a ``;`` outside braces or at the ``}`` closing a
    top-level block, so function and struct definitions form one statement.
    """
    statements: list[Statement] = []
    depth = 0
    start = 0
    for index, char in enumerate(code):
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
            if depth == 0:
                statements.append(_statement(code, start, index + 1))
                start = index + 1
        elif char == ";" and depth == 0:
            statements.append(_statement(code, start, index + 1))
            start = index + 1
    if code[start:].strip():
        statements.append(_statement(code, start, len(code)))
    return [statement for statement in statements if statement.text]


def _statement(code: str, start: int, end: int) -> Statement:
    text = code[start:end]
    stripped = text.lstrip()
    return Statement(stripped.rstrip(), start + len(text) - len(stripped))


def find_declarations(code: str) -> list[Declaration]:
    """Isolate resource declarations in source order.

    A statement is a declaration when one of its top-level decorators is a
    creator decorator (``@texture``, ``@buffer``, ``@uniform``, ``@sampler``
    or ``@ref``). Declarations are indexed in source order across all kinds.
    """
    declarations: list[Declaration] = []
    for statement in split_statements(code):
        creators = tuple(
            call.name
            for call in scan_decorators(statement.text)
            if call.name in CREATOR_DECORATORS
        )
        if not creators:
            continue
        declarations.append(
            Declaration(
                kind=creators[0],
                text=statement.text,
                line=line_of(code, statement.start),
                index=len(declarations),
                creators=creators,
            )
        )
    return declarations


def extract_function_bodies(code: str) -> list[str]:
    """Collect the text of every function, from ``fn`` to its closing brace."""
    bodies: list[str] = []
    position = 0
    while match := _FUNCTION_KEYWORD.search(code, position):
        open_index = code.find("{", match.end())
        if open_index == -1:
            break
        close = find_closing_brace(code, open_index)
        end = len(code) if close == -1 else close + 1
        bodies.append(code[match.start() : end])
        position = end
    return bodies


def find_closing_brace(code: str, open_index: int) -> int:
    depth = 0
    for index in range(open_index, len(code)):
        if code[index] == "{":
            depth += 1
        elif code[index] == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def is_used_in_bodies(name: str, bodies: list[str]) -> bool:
    """Whether any function body mentions the identifier as a whole word."""
    pattern = re.compile(rf"\b{re.escape(name)}\b")
    return any(pattern.search(body) for body in bodies)


def find_struct_definitions(code: str) -> dict[str, str]:
    """Map struct names to the text between their braces."""
    structs: dict[str, str] = {}
    for match in _STRUCT_HEADER.finditer(code):
        open_index = match.end() - 1
        close = find_closing_brace(code, open_index)
        if close != -1:
            structs.setdefault(match.group(1), code[open_index + 1 : close])
    return structs


def parse_struct_fields(body: str) -> dict[str, str]:
    """Parse ``name: type`` struct fields in order, ignoring field attributes.

    Fields may be separated by commas or semicolons.
    """
    fields: dict[str, str] = {}
    for segment in split_top_level(body, separators=",;", angle=True):
        segment = remove_decorators(segment, lambda call: True).strip()
        match = _FIELD.match(segment)
        if match:
            fields[match.group("name")] = " ".join(match.group("type").split())
    return fields
