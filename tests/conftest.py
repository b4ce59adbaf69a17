"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so the styles service runs against the
in-memory store without database connections or Azure credentials.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'styles_api' and 'function_app' are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Module-level loggers and the config singleton read these at import time
os.environ.setdefault("STYLES_STORAGE", "memory")
os.environ.setdefault("STYLES_BASE_URL", "https://styles.example.com")


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Each test sees configuration built from its own environment."""
    from styles_api.config import reset_styles_config
    reset_styles_config()
    yield
    reset_styles_config()
