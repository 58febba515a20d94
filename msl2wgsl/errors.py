"""
Exceptions raised while compiling MSL source.

Per-declaration errors (syntax, validation, wildcard lookup, evaluation) are
caught by the resource parsers, logged and cause only that declaration to be
dropped. Entry-point errors and kind conflicts abort the whole parse and reach
the caller wrapped in a single ShaderParseError.
"""


class MslError(Exception):
    """Base exception for every error reported by the MSL compiler.

    The class keeps the bare message apart from the rendered text so callers
    can log the message and the location independently.

    Examples:
        >>> raise MslError("Missing @size decorator", line=3)
        MslError: Missing @size decorator at line 3
    """

    def __init__(
        self, message: str, line: int | None = None, source: str | None = None
    ):
        """Initialize the exception with a message and optional location.

        Args:
            message: The error message
            line: 1-based source line where the error occurred
            source: The offending source text
        """
        self.message = message
        self.line = line
        self.source = source

        location_info = f" at line {line}" if line is not None else ""
        super().__init__(f"{message}{location_info}")

    def at(self, line: int | None, source: str | None = None) -> "MslError":
        """Attach location info if the error does not carry any yet.

        Args:
            line: 1-based source line
            source: The offending source text

        Returns:
            An error of the same type with the location filled in
        """
        if self.line is not None:
            return self
        error = type(self)(self.message, line, source if source else self.source)
        error.__cause__ = self.__cause__
        return error


class MslSyntaxError(MslError):
    """Unbalanced brackets, disallowed characters or malformed expressions."""


class ValidationError(MslError):
    """A declaration is structurally or semantically invalid."""


class DecoratorOrderError(ValidationError):
    """@binding appears before @group on the same declaration."""


class DimensionMismatchError(ValidationError):
    """A texture size does not have the number of components its type needs."""


class UnresolvableCategoryError(ValidationError):
    """The resource category of a reference cannot be determined."""


class UnknownWildcardError(MslError):
    """An expression references a wildcard that was not provided."""


class EvaluationError(MslError):
    """An expression could not be evaluated to finite numbers."""


class ShaderKindConflictError(MslError):
    """A shader declares both a compute and a fragment entry point."""


class ShaderParseError(MslError):
    """The single fatal error surfaced by parse_shader.

    The underlying MslError is available as ``__cause__``.
    """
