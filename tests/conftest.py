"""Shared pytest fixtures for Reel-Works tests."""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from reelworks.core.config import ReelworksConfig
from reelworks.core.controller import GenerationController
from reelworks.core.kie_client import KieApiClient
from reelworks.core.models import GenerationMode, GenerationRequest

VIDEO_URL = "http://x/video.mp4"


def submit_envelope(task_id: str | None = "abc", code: int = 200, msg: str = "success") -> dict:
    """Build a ``createTask`` response envelope."""
    data = {"taskId": task_id} if task_id is not None else {}
    return {"code": code, "msg": msg, "data": data}


def status_envelope(state: str, **data: Any) -> dict:
    """Build a ``recordInfo`` response envelope for a given remote state."""
    return {"code": 200, "msg": "success", "data": {"taskId": "abc", "state": state, **data}}


def success_envelope(*urls: str) -> dict:
    """Build a ``success`` status envelope whose result document lists ``urls``."""
    return status_envelope("success", resultJson=json.dumps({"resultUrls": list(urls)}))


@pytest.fixture
def test_config() -> ReelworksConfig:
    """Create a test configuration with all delays disabled.

    Returns:
        ReelworksConfig instance for testing
    """
    return ReelworksConfig(
        _env_file=None,
        api_base_url="https://api.test/api/v1",
        api_key=None,
        poll_interval=0.0,
        simulated_step_delay=0.0,
        max_poll_attempts=20,
        poll_timeout=60.0,
    )


@pytest.fixture
def fake_client() -> MagicMock:
    """Create a mock KieApiClient with a successful submission preset.

    Tests script ``get_record_info.side_effect`` with a list of envelopes.

    Returns:
        MagicMock constrained to the KieApiClient interface
    """
    client = MagicMock(spec=KieApiClient)
    client.create_task.return_value = submit_envelope("abc")
    return client


@pytest.fixture
def controller(test_config: ReelworksConfig, fake_client: MagicMock) -> GenerationController:
    """Create a controller wired to the mock client and an empty gallery."""
    return GenerationController(test_config, client=fake_client, gallery=[])


@pytest.fixture
def simulated_request() -> GenerationRequest:
    """Create a valid Simulated-mode request."""
    return GenerationRequest(
        prompt="A claymation conductor passionately leads a claymation orchestra",
        reference_image_url="https://example.com/conductor.jpg",
        audio_style="Symphony Orchestra, dynamic pacing",
        mode=GenerationMode.SIMULATED,
    )


@pytest.fixture
def live_request() -> GenerationRequest:
    """Create a valid Live-mode request."""
    return GenerationRequest(
        prompt="A claymation conductor passionately leads a claymation orchestra",
        reference_image_url="https://example.com/conductor.jpg",
        audio_style="Symphony Orchestra, dynamic pacing",
        mode=GenerationMode.LIVE,
        credential="test-key",
    )
