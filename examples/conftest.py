"""Fixtures for the roost examples.

``example_app`` executes the ``app.py`` next to the requesting test in a
fresh namespace, so in-memory data starts from its seed on every test.
``client`` wraps it in a ``TestClient`` with lifespan hooks run.
"""

import runpy
from pathlib import Path

import pytest

from roost.testing import TestClient


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    app_path = Path(request.path).parent / "app.py"
    namespace = runpy.run_path(str(app_path), run_name=f"example_{app_path.parent.name}")
    return namespace["app"]


@pytest.fixture
async def client(example_app):
    async with TestClient(example_app) as test_client:
        yield test_client
