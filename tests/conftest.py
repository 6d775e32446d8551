import sys
from collections.abc import Iterator

import pytest

from addonhub.app import settings as settings_module



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def builtinSettingsOnly(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Tests never read the developer's ~/.addonhub settings file."""
    monkeypatch.setattr(settings_module, "loadUserSettings", lambda path=None: {})
    settings_module.loadSettings.cache_clear()
    yield
    settings_module.loadSettings.cache_clear()
