"""
Tests for the capture session state machine.
"""

import threading

import pytest

from engines.facial_recognition.capture import (
    CaptureRegistry, CaptureSession, CaptureState, CaptureInProgress, InvalidTransition,
)


class TestCaptureSession:
    def test_starts_idle(self):
        session = CaptureSession(owner=1)
        assert session.state is CaptureState.IDLE
        assert session.busy is False

    def test_begin_then_succeed(self):
        session = CaptureSession()
        session.begin()
        assert session.busy is True
        session.succeed()
        assert session.state is CaptureState.SUCCEEDED

    def test_fail_records_error(self):
        session = CaptureSession()
        session.begin()
        session.fail(ValueError('bad frame'))
        assert session.state is CaptureState.FAILED
        assert session.error == 'bad frame'

    def test_double_begin_rejected(self):
        session = CaptureSession(owner=5)
        session.begin()
        with pytest.raises(CaptureInProgress):
            session.begin()

    def test_restart_after_finish(self):
        session = CaptureSession()
        session.begin()
        session.fail('x')
        session.begin()
        assert session.state is CaptureState.CAPTURING
        assert session.error is None

    def test_finish_without_begin(self):
        with pytest.raises(InvalidTransition):
            CaptureSession().succeed()

    def test_only_one_thread_enters(self):
        session = CaptureSession()
        barrier = threading.Barrier(8)
        entered = []
        rejected = []

        def worker():
            barrier.wait()
            try:
                session.begin()
                entered.append(1)
            except CaptureInProgress:
                rejected.append(1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(entered) == 1
        assert len(rejected) == 7


class TestCaptureRegistry:
    def test_same_owner_same_session(self):
        registry = CaptureRegistry()
        assert registry.session(1) is registry.session(1)
        assert registry.session(1) is not registry.session(2)

    def test_capture_succeeds(self):
        registry = CaptureRegistry()
        with registry.capture(1) as session:
            assert session.busy
            assert len(registry) == 1
        assert session.state is CaptureState.SUCCEEDED

    def test_capture_fails_and_reraises(self):
        registry = CaptureRegistry()
        with pytest.raises(KeyError):
            with registry.capture(1) as session:
                raise KeyError('boom')
        assert session.state is CaptureState.FAILED
        assert session.error == "'boom'"

    def test_finished_sessions_are_dropped(self):
        registry = CaptureRegistry()
        for owner in range(50):
            with registry.capture(owner):
                pass
        with pytest.raises(ValueError):
            with registry.capture('failing'):
                raise ValueError('bad frame')
        assert len(registry) == 0

    def test_owner_can_capture_again_after_finish(self):
        registry = CaptureRegistry()
        with registry.capture(1):
            pass
        with registry.capture(1) as session:
            assert session.busy

    def test_nested_capture_same_owner_rejected(self):
        registry = CaptureRegistry()
        with registry.capture(1) as outer:
            with pytest.raises(CaptureInProgress):
                with registry.capture(1):
                    pass
            # The rejected attempt leaves the running session in place
            assert registry.session(1) is outer
        assert outer.state is CaptureState.SUCCEEDED
        assert len(registry) == 0

    def test_different_owners_independent(self):
        registry = CaptureRegistry()
        with registry.capture(1):
            with registry.capture(2) as second:
                pass
            assert len(registry) == 1
        assert second.state is CaptureState.SUCCEEDED

    def test_concurrent_captures_one_per_owner(self):
        registry = CaptureRegistry()
        barrier = threading.Barrier(8)
        release = threading.Event()
        entered = []
        rejected = []

        def worker():
            barrier.wait()
            try:
                with registry.capture(1):
                    entered.append(1)
                    release.wait(timeout=5)
            except CaptureInProgress:
                rejected.append(1)
                if len(rejected) == 7:
                    release.set()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(entered) == 1
        assert len(rejected) == 7
        assert len(registry) == 0
