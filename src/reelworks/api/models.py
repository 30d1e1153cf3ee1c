"""Pydantic request models for the Reel-Works API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for automatic request parsing and OpenAPI documentation generation.

Required-field checks are deliberately *not* expressed as Pydantic
constraints: they are performed by
:func:`~reelworks.core.validation.validate_request` so the first missing
field is reported in the same fixed order everywhere.

Models
------
GenerateRequest
    Payload for ``POST /api/generate`` and ``POST /api/validate``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from reelworks.core.models import GenerationMode


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Visual prompt describing the scene.
        reference_image_url: URL of the reference image the video starts from.
        audio_style: Background audio description, embedded into the prompt
            sent to the remote model.
        mode: ``"simulated"`` or ``"live"``.  ``None`` uses the server's
            configured default mode.
        api_key: Bearer credential for Live mode.  ``None`` falls back to
            the server's configured key.
    """

    prompt: str = Field(
        default="",
        description="Visual prompt describing the scene.",
    )
    reference_image_url: str = Field(
        default="",
        description="Reference image URL (the first frame of the video).",
    )
    audio_style: str = Field(
        default="",
        description="Background audio style, e.g. 'Symphony Orchestra, dynamic pacing'.",
    )
    mode: GenerationMode | None = Field(
        default=None,
        description="Generation mode: 'simulated' or 'live'.  None = server default.",
    )
    api_key: str | None = Field(
        default=None,
        description="Bearer credential for live mode.  None = server default key.",
    )
