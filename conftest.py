import os
import sys

import pytest

# Make the Django project under backend/ importable when running `pytest` from the repo root
BASE_DIR = os.path.dirname(__file__)
BACKEND_DIR = os.path.join(BASE_DIR, 'backend')
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)


@pytest.fixture(autouse=True)
def _clear_cache():
    """LocMemCache outlives the per-test database rollback; cached listings must not leak."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()
