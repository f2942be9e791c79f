import os

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep Settings from reading a local config.toml, .env or DOLPHIN_ variables."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("DOLPHIN_"):
            monkeypatch.delenv(name)
