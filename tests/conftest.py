"""Shared pytest fixtures."""
import pytest

from shoebox.core.config import MemorySettingsStore, ShoeboxSettings


@pytest.fixture
def settings_store():
    """Settings kept in memory so tests never touch the user's config."""
    return MemorySettingsStore(ShoeboxSettings(progress_interval=0))


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path):
    path = tmp_path / "library"
    path.mkdir()
    return path
