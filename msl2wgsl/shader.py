"""
Top-level MSL compilation.

``parse_shader`` runs the whole pipeline: comment removal, shader kind
detection, resource parsing, binding allocation, entry metadata extraction
and WGSL emission. Invalid resource declarations are logged and dropped;
every other error aborts the parse with a single ShaderParseError.
"""

from collections.abc import Iterable

from loguru import logger

from msl2wgsl.bindings import allocate_bindings
from msl2wgsl.decorators import find_declarations, strip_comments
from msl2wgsl.emitter import transform_code
from msl2wgsl.entry import detect_shader_kind, parse_entry_metadata
from msl2wgsl.errors import MslError, ShaderParseError
from msl2wgsl.models import ParserConfig, ShaderMetadata, Wildcard
from msl2wgsl.parsers import ParseContext, parse_resources


def parse_shader(
    source: str,
    wildcards: Iterable[Wildcard] = (),
    config: ParserConfig | None = None,
) -> ShaderMetadata:
    """Compile MSL source into shader metadata and WGSL.

    Args:
        source: MSL source text
        wildcards: Wildcards available to decorator expressions; their
            current values are read during this call
        config: Parser configuration, defaults to ParserConfig()

    Returns:
        Shader metadata with resources ordered by (group, binding)

    Raises:
        ShaderParseError: If the shader kind or the entry metadata cannot be
            determined. The underlying error is the ``__cause__``.
    """
    try:
        code = strip_comments(source)
        kind = detect_shader_kind(code)
        context = ParseContext.create(code, wildcards, config)

        declarations = find_declarations(code)
        resources, collisions = allocate_bindings(parse_resources(declarations, context))
        kind_metadata = parse_entry_metadata(kind, context, resources)
        wgsl = transform_code(code, resources, kind, kind_metadata)
    except MslError as e:
        logger.error(f"Shader parsing error: {e}")
        raise ShaderParseError(f"Shader parsing error: {e.message}", e.line, e.source) from e

    logger.debug(
        f"Parsed {kind.value} shader with {len(resources)} resources "
        f"({len(declarations) - len(resources)} dropped)"
    )
    return ShaderMetadata(
        kind=kind,
        kind_metadata=kind_metadata,
        resources=tuple(resources),
        code=wgsl,
        diagnostics=tuple(collisions),
    )
