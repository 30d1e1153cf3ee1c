"""Unit tests for GenerationController: the job lifecycle entry point.

All Live-mode tests script the mocked KieApiClient so no network access
occurs; delays are disabled by the ``test_config`` fixture.
"""

from __future__ import annotations

import gc
import threading
from dataclasses import replace
from unittest.mock import patch

import pytest
from conftest import VIDEO_URL, status_envelope, submit_envelope, success_envelope

from reelworks.core.controller import GenerationController
from reelworks.core.errors import (
    EmptyResultError,
    GenerationFailure,
    GenerationError,
    JobCancelledError,
    JobInProgressError,
    JobTimeoutError,
    PollError,
    SubmissionError,
    ValidationError,
)
from reelworks.core.models import ArtifactKind, CancellationToken, JobPhase, JobSnapshot
from reelworks.core.kie_client import KieApiClient
from reelworks.core.modes.simulated import build_placeholder_url


def _script_success(fake_client):
    fake_client.get_record_info.side_effect = [
        status_envelope("processing"),
        status_envelope("processing"),
        success_envelope(VIDEO_URL),
    ]


# ---------------------------------------------------------------------------
# Successful jobs.
# ---------------------------------------------------------------------------


class TestSimulatedJob:
    """Simulated mode end to end."""

    def test_progress_sequence(self, controller, simulated_request):
        events = list(controller.generate(simulated_request))

        assert [e.progress for e in events] == [0, 10, 35, 60, 85, 100]
        assert events[-1].phase == JobPhase.SUCCEEDED
        assert events[-1].result.kind == ArtifactKind.IMAGE
        assert events[-1].result.url == build_placeholder_url(simulated_request.prompt)

    def test_exactly_one_terminal_event(self, controller, simulated_request):
        events = list(controller.generate(simulated_request))
        assert [e.is_terminal for e in events] == [False] * 5 + [True]

    def test_result_front_inserted_into_gallery(self, controller, simulated_request):
        controller.run(simulated_request)
        controller.run(replace(simulated_request, prompt="Second prompt"))

        assert [entry.prompt for entry in controller.gallery] == [
            "Second prompt",
            simulated_request.prompt,
        ]

    def test_no_network_calls(self, controller, fake_client, simulated_request):
        controller.run(simulated_request)
        fake_client.create_task.assert_not_called()
        fake_client.get_record_info.assert_not_called()


class TestLiveJob:
    """Live mode end to end against a scripted client."""

    def test_progress_sequence(self, controller, fake_client, live_request):
        _script_success(fake_client)

        events = list(controller.generate(live_request))

        assert [e.progress for e in events] == [0, 10, 20, 25, 30, 95, 100]
        assert events[-1].phase == JobPhase.SUCCEEDED
        assert events[-1].result.url == VIDEO_URL
        assert events[-1].result.kind == ArtifactKind.VIDEO

    def test_progress_is_non_decreasing(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [status_envelope("waiting")] * 30 + [
            success_envelope(VIDEO_URL)
        ]
        cfg = controller.config.model_copy(update={"max_poll_attempts": 50})
        controller = GenerationController(cfg, client=fake_client, gallery=[])

        progress = [e.progress for e in controller.generate(live_request)]

        assert progress == sorted(progress)
        assert max(progress[:-2]) == cfg.poll_progress_cap

    def test_run_returns_entry(self, controller, fake_client, live_request):
        _script_success(fake_client)
        entry = controller.run(live_request)
        assert entry.url == VIDEO_URL
        assert controller.gallery == [entry]


# ---------------------------------------------------------------------------
# Failures.
# ---------------------------------------------------------------------------


class TestFailures:
    """Every failure ends the stream with one terminal event carrying an error."""

    def test_remote_failure(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [
            status_envelope("processing"),
            status_envelope("fail", failMsg="gpu oom"),
        ]

        events = list(controller.generate(live_request))
        last = events[-1]

        assert last.phase == JobPhase.FAILED
        assert isinstance(last.error, GenerationError)
        assert last.message == "gpu oom"
        assert last.result is None
        assert last.progress == 25
        assert controller.gallery == []

    def test_hollow_success(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [
            status_envelope("success", resultJson='{"resultUrls": []}')
        ]
        last = list(controller.generate(live_request))[-1]
        assert isinstance(last.error, EmptyResultError)
        assert last.error.reason == "empty"
        assert last.phase == JobPhase.FAILED
        assert controller.gallery == []

    def test_undecodable_result(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [
            status_envelope("success", resultJson="not json")
        ]
        last = list(controller.generate(live_request))[-1]
        assert isinstance(last.error, EmptyResultError)
        assert last.error.reason == "undecodable"

    def test_submission_failure_never_polls(self, controller, fake_client, live_request):
        fake_client.create_task.return_value = submit_envelope(None, code=401, msg="Bad key")

        events = list(controller.generate(live_request))

        assert isinstance(events[-1].error, SubmissionError)
        assert events[-1].message == "Bad key"
        assert events[-1].progress == 10
        fake_client.get_record_info.assert_not_called()

    def test_poll_error(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [{"code": 500, "msg": "server error"}]
        last = list(controller.generate(live_request))[-1]
        assert isinstance(last.error, PollError)
        assert last.message == "server error"

    def test_timeout(self, fake_client, test_config, live_request):
        cfg = test_config.model_copy(update={"max_poll_attempts": 2})
        controller = GenerationController(cfg, client=fake_client, gallery=[])
        fake_client.get_record_info.return_value = status_envelope("processing")

        last = list(controller.generate(live_request))[-1]

        assert last.phase == JobPhase.TIMED_OUT
        assert isinstance(last.error, JobTimeoutError)
        assert isinstance(last.error, TimeoutError)
        assert last.progress == 30

    def test_run_raises_terminal_error(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [status_envelope("fail", failMsg="gpu oom")]
        with pytest.raises(GenerationError, match="gpu oom"):
            controller.run(live_request)

    def test_serialised_error_event(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [status_envelope("fail", failMsg="gpu oom")]
        data = list(controller.generate(live_request))[-1].to_dict()
        assert data["status"] == "failed"
        assert data["result"] is None
        assert data["error"] == {"kind": "generation", "message": "gpu oom"}

    def test_unencodable_credential_ends_with_terminal_event(self, test_config, live_request):
        """A credential outside latin-1 fails the job instead of escaping the stream."""
        client = KieApiClient(test_config)
        controller = GenerationController(test_config, client=client, gallery=[])

        events = list(controller.generate(replace(live_request, credential="key\u2019s")))
        last = events[-1]

        assert [e.is_terminal for e in events].count(True) == 1
        assert last.phase == JobPhase.FAILED
        assert isinstance(last.error, SubmissionError)
        assert controller.snapshot.phase == JobPhase.FAILED
        assert controller.snapshot.progress == last.progress
        assert not controller.is_busy
        client.close()

    def test_unexpected_error_ends_with_terminal_event(self, controller, fake_client, live_request):
        fake_client.create_task.side_effect = RuntimeError("socket exploded")

        events = list(controller.generate(live_request))
        last = events[-1]

        assert last.is_terminal
        assert last.phase == JobPhase.FAILED
        assert type(last.error) is GenerationFailure
        assert "socket exploded" in last.message
        assert isinstance(last.error.__cause__, RuntimeError)
        assert last.to_dict()["error"]["kind"] == "failure"
        assert controller.snapshot.phase == JobPhase.FAILED
        assert not controller.is_busy

    def test_run_raises_unexpected_error_as_failure(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = KeyError("state")
        with pytest.raises(GenerationFailure):
            controller.run(live_request)


class TestValidationBeforeNetwork:
    def test_missing_credential_raises_eagerly(self, controller, fake_client, live_request):
        with pytest.raises(ValidationError) as exc_info:
            controller.generate(replace(live_request, credential=None))
        assert exc_info.value.missing_field == "credential"
        fake_client.create_task.assert_not_called()
        assert not controller.is_busy

    def test_validate_has_no_side_effects(self, controller, fake_client, live_request):
        controller.validate(live_request)
        assert controller.snapshot == JobSnapshot()
        fake_client.create_task.assert_not_called()


# ---------------------------------------------------------------------------
# Concurrency and cancellation.
# ---------------------------------------------------------------------------


class TestSingleJob:
    """At most one job runs at a time."""

    def test_second_request_rejected_while_running(self, controller, simulated_request):
        events = controller.generate(simulated_request)
        assert controller.is_busy

        with pytest.raises(JobInProgressError):
            controller.generate(simulated_request)

        list(events)
        assert not controller.is_busy

    def test_abandoned_stream_releases_lock(self, controller, simulated_request):
        events = controller.generate(simulated_request)
        next(events)
        del events
        gc.collect()

        assert not controller.is_busy
        controller.run(simulated_request)

    def test_lock_released_after_failure(self, controller, fake_client, live_request):
        fake_client.create_task.return_value = submit_envelope(None, code=500, msg="down")
        list(controller.generate(live_request))
        assert not controller.is_busy

    def test_progress_resets_for_next_request(self, controller, fake_client, live_request):
        fake_client.get_record_info.side_effect = [status_envelope("fail", failMsg="x")]
        list(controller.generate(live_request))
        assert controller.snapshot.progress == 20

        _script_success(fake_client)
        events = list(controller.generate(live_request))
        assert events[0].progress == 0


class TestCancellation:
    def test_cancel_without_job(self, controller):
        assert controller.cancel() is False

    def test_cancel_while_waiting(self, controller, fake_client, live_request):
        fake_client.get_record_info.return_value = status_envelope("waiting")

        def cancel_on_submit(event):
            if event.message == "Task abc accepted":
                assert controller.cancel() is True

        controller.subscribe(cancel_on_submit)
        last = list(controller.generate(live_request))[-1]

        assert last.phase == JobPhase.CANCELLED
        assert isinstance(last.error, JobCancelledError)
        fake_client.get_record_info.assert_not_called()
        assert not controller.is_busy

    def test_external_token(self, controller, simulated_request):
        token = CancellationToken()
        events = controller.generate(simulated_request, token=token)
        next(events)
        token.cancel()
        last = list(events)[-1]
        assert last.phase == JobPhase.CANCELLED
        assert controller.gallery == []

    def test_cancel_from_another_thread(self, fake_client, test_config, live_request):
        cfg = test_config.model_copy(update={"poll_interval": 5.0})
        controller = GenerationController(cfg, client=fake_client, gallery=[])
        fake_client.get_record_info.return_value = status_envelope("waiting")

        events = controller.generate(live_request)
        timer = threading.Timer(0.05, controller.cancel)
        timer.start()
        try:
            last = list(events)[-1]
        finally:
            timer.cancel()

        assert last.phase == JobPhase.CANCELLED
        fake_client.get_record_info.assert_not_called()


# ---------------------------------------------------------------------------
# Observation.
# ---------------------------------------------------------------------------


class TestObservation:
    def test_subscriber_receives_every_event(self, controller, simulated_request):
        received = []
        controller.subscribe(received.append)

        events = list(controller.generate(simulated_request))

        assert received == events

    def test_unsubscribe(self, controller, simulated_request):
        received = []
        unsubscribe = controller.subscribe(received.append)
        unsubscribe()
        controller.run(simulated_request)
        assert received == []

    def test_failing_subscriber_does_not_break_job(self, controller, simulated_request):
        def broken(event):
            raise RuntimeError("observer bug")

        controller.subscribe(broken)
        entry = controller.run(simulated_request)
        assert entry.kind == ArtifactKind.IMAGE

    def test_snapshot_matches_each_event(self, controller, simulated_request):
        for event in controller.generate(simulated_request):
            snapshot = controller.snapshot
            assert (snapshot.phase, snapshot.progress, snapshot.message) == (
                event.phase,
                event.progress,
                event.message,
            )

    def test_initial_snapshot(self, controller):
        assert controller.snapshot.phase == JobPhase.IDLE
        assert controller.snapshot.progress == 0


# ---------------------------------------------------------------------------
# Client ownership.
# ---------------------------------------------------------------------------


class TestClientOwnership:
    """A controller built without a client creates one and reuses it for every job."""

    def test_one_client_shared_across_jobs(self, test_config, live_request):
        with patch("reelworks.core.controller.KieApiClient") as client_class:
            client = client_class.return_value
            client.create_task.return_value = submit_envelope("abc")
            client.get_record_info.side_effect = [
                success_envelope(VIDEO_URL),
                success_envelope(VIDEO_URL),
            ]
            controller = GenerationController(test_config, gallery=[])

            controller.run(live_request)
            controller.run(live_request)

        client_class.assert_called_once_with(test_config)
        assert client.create_task.call_count == 2

    def test_close_closes_owned_client(self, test_config):
        with patch("reelworks.core.controller.KieApiClient") as client_class:
            controller = GenerationController(test_config)
        controller.close()
        client_class.return_value.close.assert_called_once()

    def test_close_leaves_injected_client_open(self, controller, fake_client):
        controller.close()
        fake_client.close.assert_not_called()
