"""
Root pytest configuration.

Loaded before test collection so the packages under src/ import
without installation.
"""

import sys
from pathlib import Path

import pytest

src_str = str((Path(__file__).parent / "src").absolute())
if src_str in sys.path:
    sys.path.remove(src_str)
sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear cached settings between tests so env overrides don't leak."""
    yield
    from config.settings import get_settings
    get_settings.cache_clear()
