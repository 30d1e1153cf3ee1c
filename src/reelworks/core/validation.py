"""Pre-flight validation for generation requests."""

import logging

from .errors import ValidationError
from .models import GenerationMode, GenerationRequest

logger = logging.getLogger(__name__)

__all__ = ["ValidationError", "validate_request", "is_blank"]


def is_blank(value: str | None) -> bool:
    """Return True for None, empty, or whitespace-only strings."""
    return value is None or not value.strip()


def validate_request(request: GenerationRequest) -> None:
    """Check that every required field of a request is present.

    Fields are checked in a fixed order so the first reported error is
    deterministic:

    1. credential (only when the request runs in Live mode)
    2. reference image URL
    3. prompt

    This function is pure: it never mutates the request and performs no
    network access, so calling it repeatedly always gives the same result.

    Args:
        request: Request to validate

    Raises:
        ValidationError: Naming the first missing field
    """
    if request.mode == GenerationMode.LIVE and is_blank(request.credential):
        logger.warning("Validation failed: missing credential for live mode")
        raise ValidationError("credential", "Please provide your Kie AI API key.")

    if is_blank(request.reference_image_url):
        logger.warning("Validation failed: missing reference image URL")
        raise ValidationError("reference_image_url", "Please provide a reference image URL.")

    if is_blank(request.prompt):
        logger.warning("Validation failed: missing prompt")
        raise ValidationError("prompt", "Please provide a visual prompt.")
