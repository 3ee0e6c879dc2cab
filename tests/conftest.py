"""Shared test configuration for outline-mcp tests.

Provides fixtures for the engine's collaborators (sinks, providers) and a
controller wired to them. Controllers are closed after each test so no
extraction task outlives its event loop.
"""

from collections.abc import AsyncIterator

import pytest
from test_utils import GatedProvider, RecordingSink

from outline_mcp.engine import OutlineConfig, OutlineController


@pytest.fixture
def sink() -> RecordingSink:
    """Sink recording every publication."""
    return RecordingSink()


@pytest.fixture
def gated_provider() -> GatedProvider:
    """Provider whose calls complete only when the test releases them."""
    return GatedProvider()


@pytest.fixture
async def gated_controller(
    gated_provider: GatedProvider, sink: RecordingSink
) -> AsyncIterator[OutlineController]:
    """Controller driven by the gated provider."""
    controller = OutlineController(gated_provider, sink, OutlineConfig())
    yield controller
    gated_provider.release_all()
    await controller.close()
