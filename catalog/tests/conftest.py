from __future__ import annotations

import pytest

from archi_catalog.config import CatalogSettings
from common import make_settings


@pytest.fixture
def settings() -> CatalogSettings:
    return make_settings()
