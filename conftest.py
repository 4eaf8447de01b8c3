import pytest


@pytest.fixture(autouse=True)
def _isolated_cache_and_media(settings, tmp_path):
    """Fresh throttle counters and a throwaway MEDIA_ROOT for every test."""
    from django.core.cache import cache

    cache.clear()
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    yield
    cache.clear()
