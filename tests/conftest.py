"""
Shared fixtures: fast settings, a scripted generation client and a fake renderer.
"""
from typing import List

import pytest

from carouselai.core.config import Settings
from carouselai.domain.schemas.slide import SlideRecord, SlideType
from carouselai.services.ai.client_handle import ClientHandle
from carouselai.services.workspace import Workspace
from tests.fixtures.generation import IMAGE_TIERS, TEXT_TIERS, FakeGenerationClient, FakeRenderer


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        GEMINI_API_KEY=None,
        TEXT_MODEL_TIERS=TEXT_TIERS,
        IMAGE_MODEL_TIERS=IMAGE_TIERS,
        STATUS_CLEAR_DELAY_SECONDS=0.05,
        BATCH_SETTLE_DELAY_SECONDS=0.05,
        ASSET_WAIT_TIMEOUT_SECONDS=0.1,
        RENDER_SETTLE_DELAY_SECONDS=0,
    )


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def client_handle(fake_client) -> ClientHandle:
    return ClientHandle(client=fake_client)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def slides() -> List[SlideRecord]:
    return [
        SlideRecord(id="s1", type=SlideType.COVER, content="# Why nobody tells you this"),
        SlideRecord(id="s2", content="**Point** two", image_prompt="a lighthouse at dusk"),
        SlideRecord(id="s3", type=SlideType.CTA, content="Follow for more"),
    ]


@pytest.fixture
def workspace(fast_settings, client_handle, fake_renderer, slides) -> Workspace:
    ws = Workspace(fast_settings, client_handle=client_handle, renderer=fake_renderer)
    ws.store.reset(slides)
    return ws
