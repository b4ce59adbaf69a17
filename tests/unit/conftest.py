"""
Unit test fixtures: registry, in-memory store, service.
"""

import pytest

from styles_api.config import StylesAPIConfig
from styles_api.registry import build_registry
from styles_api.repository import InMemoryStyleRepository
from styles_api.service import StylesService
from tests.factories.style_factories import make_cartosym_style, make_style_name


@pytest.fixture
def config():
    """In-memory configuration with a fixed base URL."""
    return StylesAPIConfig(
        storage_backend="memory",
        styles_base_url="https://styles.example.com",
        default_format="cartosym",
        enabled_formats=[]
    )


@pytest.fixture
def registry():
    """Registry with every built-in handler."""
    return build_registry()


@pytest.fixture
def repository():
    return InMemoryStyleRepository()


@pytest.fixture
def service(repository, registry, config):
    return StylesService(repository=repository, registry=registry, config=config)


@pytest.fixture
def style_name():
    return make_style_name()


@pytest.fixture
def cartosym_style(style_name):
    """Return randomized polygon CartoSym-JSON dict."""
    return make_cartosym_style(name=style_name)
