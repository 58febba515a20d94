"""
Shared protocol of the resource declaration parsers.

Every resource kind follows the same steps: structural validation of the
declaration text, then extraction of the name, type and parameters. Any
problem found on a declaration is logged with its position and original text
and only that declaration is dropped; the rest of the source still parses.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from msl2wgsl.constants import BINDING, GROUP, UNASSIGNED_BINDING
from msl2wgsl.decorators import (
    Declaration,
    DecoratorCall,
    extract_function_bodies,
    find_decorator,
    find_struct_definitions,
    is_used_in_bodies,
)
from msl2wgsl.errors import (
    DecoratorOrderError,
    MslError,
    MslSyntaxError,
    ValidationError,
)
from msl2wgsl.expression import evaluate, referenced_wildcards
from msl2wgsl.models import Number, ParserConfig, Resource, Wildcard

_BRACKET_PAIRS = (("(", ")"), ("[", "]"), ("{", "}"), ("<", ">"))
_GROUP_DECORATOR = re.compile(rf"@{GROUP}\b")
_BINDING_DECORATOR = re.compile(rf"@{BINDING}\b")


@dataclass
class ParseContext:
    """Inputs shared by all declaration parsers during one parse.

    Attributes:
        code: Source with comments removed
        wildcards: Wildcards available to expressions
        config: Parser configuration
        function_bodies: Text of every function, used for usage detection
        structs: Struct name to struct body text
    """

    code: str
    wildcards: tuple[Wildcard, ...] = ()
    config: ParserConfig = field(default_factory=ParserConfig)
    function_bodies: list[str] = field(default_factory=list)
    structs: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        code: str,
        wildcards: Iterable[Wildcard] = (),
        config: ParserConfig | None = None,
    ) -> "ParseContext":
        """Build a context, collecting function bodies and structs from code."""
        return cls(
            code=code,
            wildcards=tuple(wildcards),
            config=config or ParserConfig(),
            function_bodies=extract_function_bodies(code),
            structs=find_struct_definitions(code),
        )

    def evaluate(self, expression: str) -> list[Number]:
        """Evaluate an expression against the current wildcard values."""
        return evaluate(expression, self.wildcards, self.config.wildcard_prefix)

    def wildcards_in(self, *expressions: str | None) -> frozenset[str]:
        """Names of the wildcards referenced by the given expressions."""
        names: set[str] = set()
        for expression in expressions:
            if expression:
                names |= referenced_wildcards(expression, self.config.wildcard_prefix)
        return frozenset(names)

    def used_in_body(self, name: str) -> bool:
        """Whether any function body references the identifier."""
        return is_used_in_bodies(name, self.function_bodies)


def check_brackets(text: str) -> list[MslError]:
    """Report bracket pairs whose opening and closing counts differ."""
    issues: list[MslError] = []
    for opening, closing in _BRACKET_PAIRS:
        opened, closed = text.count(opening), text.count(closing)
        if opened != closed:
            issues.append(
                MslSyntaxError(
                    f"Mismatched '{opening}{closing}': found {opened} opening "
                    f"and {closed} closing"
                )
            )
    return issues


def check_decorator_order(text: str) -> list[MslError]:
    """@group must come before @binding when both are present."""
    group = _GROUP_DECORATOR.search(text)
    binding = _BINDING_DECORATOR.search(text)
    if group and binding and binding.start() < group.start():
        return [DecoratorOrderError("When both are present, @group must come before @binding")]
    return []


def parse_slot_index(call: DecoratorCall | None, default: int) -> int:
    """Read the integer literal of an @group or @binding decorator."""
    if call is None:
        return default
    argument = (call.argument or "").strip()
    if not argument.isdigit():
        raise ValidationError(
            f"@{call.name} expects a non-negative integer literal, got '{argument}'"
        )
    return int(argument)


def binding_slot(text: str) -> tuple[int, int]:
    """Explicit (group, binding) of a declaration; binding -1 when absent."""
    group = parse_slot_index(find_decorator(text, GROUP), 0)
    binding = parse_slot_index(find_decorator(text, BINDING), UNASSIGNED_BINDING)
    return group, binding


def positive_integer(value: Number, what: str) -> int:
    """Check that a resolved value is a positive integer and return it as int."""
    if value <= 0:
        raise ValidationError(f"{what} must be greater than 0, got {value}")
    if not float(value).is_integer():
        raise ValidationError(f"{what} must be an integer, got {value}")
    return int(value)


class ResourceParser(ABC):
    """Parser for one kind of resource declaration."""

    kind: str
    label: str

    def parse(self, declarations: Iterable[Declaration], context: ParseContext) -> list[Resource]:
        """Parse every declaration of this parser's kind, dropping invalid ones.

        Args:
            declarations: Declarations isolated from the source
            context: Shared parse inputs

        Returns:
            Resources in source order
        """
        resources = []
        for declaration in declarations:
            if declaration.kind != self.kind:
                continue
            resource = self.parse_declaration(declaration, context)
            if resource is not None:
                resources.append(resource)
        return resources

    def parse_declaration(
        self, declaration: Declaration, context: ParseContext
    ) -> Resource | None:
        """Validate and build one declaration, or log and drop it."""
        issues = self.validate(declaration)
        if not issues:
            try:
                resource = self.build(declaration, context)
            except MslError as e:
                issues = [e]
            else:
                logger.debug(
                    f"Parsed {self.kind}: {resource.name} "
                    f"(declaration #{declaration.index}, line {declaration.line})"
                )
                return resource

        for issue in issues:
            logger.error(
                f"{self.label} declaration #{declaration.index} "
                f"(line {declaration.line}): {issue.message}"
            )
        logger.error(f"Original declaration:\n{declaration.text}")
        return None

    def validate(self, declaration: Declaration) -> list[MslError]:
        """Run the structural checks shared by all kinds plus the kind's own."""
        issues: list[MslError] = []
        if len(declaration.creators) > 1:
            creators = ", ".join(f"@{name}" for name in declaration.creators)
            issues.append(
                ValidationError(f"Declaration has more than one resource decorator: {creators}")
            )
        issues.extend(check_brackets(declaration.text))
        issues.extend(check_decorator_order(declaration.text))
        issues.extend(self.validate_kind(declaration.text))
        return issues

    @abstractmethod
    def validate_kind(self, text: str) -> list[MslError]:
        """Kind-specific structural checks."""

    @abstractmethod
    def build(self, declaration: Declaration, context: ParseContext) -> Resource:
        """Extract the resource from a structurally valid declaration.

        Raises:
            MslError: If a parameter cannot be resolved or is out of range
        """
