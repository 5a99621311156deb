"""
Capture Session — per-user guard around a face capture + verification attempt.
Rejects a second submission from the same user while the first is still being
processed.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    IDLE = 'idle'
    CAPTURING = 'capturing'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


class CaptureInProgress(RuntimeError):
    """A capture for this owner is already running."""
    code = 'capture_in_progress'


class InvalidTransition(RuntimeError):
    code = 'invalid_transition'


class CaptureSession:
    """
    State machine: idle → capturing → succeeded | failed.

    A finished session (succeeded or failed) may begin again. Transitions are
    serialized with a lock so two threads cannot both enter ``capturing``.
    """

    def __init__(self, owner=None):
        self.owner = owner
        self.state = CaptureState.IDLE
        self.error: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self.state is CaptureState.CAPTURING

    def begin(self) -> None:
        with self._lock:
            if self.state is CaptureState.CAPTURING:
                raise CaptureInProgress(f"Capture already in progress for {self.owner}")
            self.state = CaptureState.CAPTURING
            self.error = None

    def succeed(self) -> None:
        self._finish(CaptureState.SUCCEEDED)

    def fail(self, error=None) -> None:
        self._finish(CaptureState.FAILED, error)

    def _finish(self, state: CaptureState, error=None) -> None:
        with self._lock:
            if self.state is not CaptureState.CAPTURING:
                raise InvalidTransition(f"Cannot move from {self.state.value} to {state.value}")
            self.state = state
            self.error = str(error) if error is not None else None


class CaptureRegistry:
    """
    Owns the CaptureSession of each user with a capture running.

    Finished sessions are dropped, so the registry only holds busy users.
    """

    def __init__(self):
        self._sessions: Dict[object, CaptureSession] = {}
        self._lock = threading.Lock()

    def session(self, owner) -> CaptureSession:
        with self._lock:
            if owner not in self._sessions:
                self._sessions[owner] = CaptureSession(owner)
            return self._sessions[owner]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @contextmanager
    def capture(self, owner):
        """
        Run a block as the owner's capture.

        Raises CaptureInProgress if the owner already has one running. The
        session ends as failed if the block raises, succeeded otherwise.
        """
        # Lookup and begin happen under the registry lock so a session being
        # released cannot be handed to a second capture
        with self._lock:
            session = self._sessions.setdefault(owner, CaptureSession(owner))
            session.begin()
        try:
            yield session
        except BaseException as e:
            session.fail(e)
            logger.debug(f"Capture for {owner} failed: {e}")
            raise
        else:
            session.succeed()
        finally:
            self._release(owner, session)

    def _release(self, owner, session: CaptureSession) -> None:
        with self._lock:
            if self._sessions.get(owner) is session and not session.busy:
                del self._sessions[owner]
