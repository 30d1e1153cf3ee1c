"""Job submission for the Live pipeline."""

from __future__ import annotations

import logging
from typing import Any

from .errors import SubmissionError
from .kie_client import KieApiClient
from .models import GenerationRequest, JobHandle

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200


def compose_prompt(prompt: str, audio_style: str) -> str:
    """Embed the audio-style hint as a structured suffix of the text prompt.

    The remote API has no separate audio channel, so the hint travels inside
    the prompt.  A blank hint leaves the prompt untouched.

    Args:
        prompt: Visual prompt
        audio_style: Background audio description

    Returns:
        Prompt sent to the remote model
    """
    prompt = prompt.strip()
    if not audio_style or not audio_style.strip():
        return prompt
    return f"{prompt}. [BACKGROUND AUDIO: {audio_style.strip()}]"


def build_payload(request: GenerationRequest, model_id: str) -> dict[str, Any]:
    """Build the JSON body of the job creation call."""
    return {
        "model": model_id,
        "input": {
            "prompt": compose_prompt(request.prompt, request.audio_style),
            "image_urls": [request.reference_image_url.strip()],
        },
    }


class JobSubmitter:
    """Sends exactly one creation call per request and extracts a JobHandle."""

    def __init__(self, client: KieApiClient, model_id: str) -> None:
        self.client = client
        self.model_id = model_id

    def submit(self, request: GenerationRequest) -> JobHandle:
        """Create a remote job for a validated Live request.

        Args:
            request: Validated request with mode=LIVE

        Returns:
            Handle carrying the remote ``taskId``

        Raises:
            SubmissionError: If the transport fails, ``code`` is not 200, or
                ``data.taskId`` is absent
        """
        payload = build_payload(request, self.model_id)
        envelope = self.client.create_task(payload, request.credential or "")

        data = envelope.get("data")
        task_id = data.get("taskId") if isinstance(data, dict) else None

        if envelope.get("code") != SUCCESS_CODE or not task_id:
            message = envelope.get("msg") or "Unknown error"
            logger.warning(f"Job submission rejected: code={envelope.get('code')} msg={message}")
            raise SubmissionError(message)

        handle = JobHandle(id=str(task_id))
        logger.info(f"Job submitted: taskId={handle.id}")
        return handle
