"""Final artifact resolution for successful jobs."""

from __future__ import annotations

import logging

from .errors import EmptyResultError
from .models import ArtifactKind, GalleryEntry, JobState, JobStatus

logger = logging.getLogger(__name__)


class ResultResolver:
    """Turns a SUCCEEDED status into a gallery entry.

    A remote job can report success without a usable artifact.  Two such
    "hollow success" cases are told apart:

    - the result document decoded but listed no URLs (``reason="empty"``)
    - the result document could not be decoded (``reason="undecodable"``)

    Both raise :class:`EmptyResultError`; neither is merged with other
    failure kinds.
    """

    def resolve(self, status: JobStatus, kind: ArtifactKind, prompt: str = "") -> GalleryEntry:
        """Extract the final artifact from a terminal success.

        Args:
            status: Terminal status returned by the poller
            kind: Media type produced by the pipeline
            prompt: Prompt recorded with the gallery entry

        Returns:
            Gallery entry for the first result URL

        Raises:
            ValueError: If ``status`` is not a success
            EmptyResultError: If the success carries no URL
        """
        if status.state != JobState.SUCCEEDED:
            raise ValueError(f"Cannot resolve a result from state {status.state.value!r}")

        if not status.result_decoded:
            logger.warning("Remote job succeeded but its result document was undecodable")
            raise EmptyResultError("undecodable")

        url = status.artifact_urls[0] if status.artifact_urls else ""
        if not url:
            logger.warning("Remote job succeeded without any result URL")
            raise EmptyResultError("empty")

        logger.info(f"Resolved artifact: {url}")
        return GalleryEntry(url=url, kind=kind, prompt=prompt)
