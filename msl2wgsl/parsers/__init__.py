"""Resource declaration parsers, one per creator decorator."""

from collections.abc import Sequence

from msl2wgsl.decorators import Declaration
from msl2wgsl.models import Resource
from msl2wgsl.parsers.base import ParseContext, ResourceParser
from msl2wgsl.parsers.buffer import BufferParser
from msl2wgsl.parsers.reference import ReferenceParser
from msl2wgsl.parsers.sampler import SamplerParser
from msl2wgsl.parsers.texture import TextureParser
from msl2wgsl.parsers.uniform import UniformParser

PARSERS: tuple[ResourceParser, ...] = (
    TextureParser(),
    BufferParser(),
    UniformParser(),
    SamplerParser(),
    ReferenceParser(),
)


def parse_resources(declarations: Sequence[Declaration], context: ParseContext) -> list[Resource]:
    """Parse every declaration with the parser of its kind.

    Results are grouped by kind (textures, buffers, uniforms, samplers,
    references), each group in source order. Invalid declarations are logged
    and dropped.
    """
    resources: list[Resource] = []
    for parser in PARSERS:
        resources.extend(parser.parse(declarations, context))
    return resources


__all__ = ["PARSERS", "ParseContext", "ResourceParser", "parse_resources"]
