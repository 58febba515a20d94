"""Fixtures and configuration for pytest."""

import pytest
from loguru import logger

from msl2wgsl.decorators import find_declarations, strip_comments
from msl2wgsl.models import FixedViewport, ParserConfig, Wildcard
from msl2wgsl.parsers import ParseContext


@pytest.fixture
def log_messages():
    """Capture loguru messages as "LEVEL: message" strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(
            f"{message.record['level'].name}: {message.record['message']}"
        ),
        level="DEBUG",
        format="{message}",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def wildcards():
    """Fixture providing the wildcards a typical host application exposes."""
    return [
        Wildcard("resolution", [1920, 1080]),
        Wildcard("time", [0.5]),
        Wildcard("color", [0.1, 0.2, 0.3, 1.0]),
        Wildcard("transform", [1, 2, 3, 4]),
    ]


@pytest.fixture
def config():
    """Fixture providing a parser config with a fixed viewport."""
    return ParserConfig(viewport=FixedViewport(800, 600))


@pytest.fixture
def parse_declarations(wildcards, config):
    """Fixture returning a helper that runs one parser over source code."""

    def parse(parser, code):
        code = strip_comments(code)
        context = ParseContext.create(code, wildcards, config)
        return parser.parse(find_declarations(code), context)

    return parse
