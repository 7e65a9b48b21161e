"""Capture service for managing one capture session per target."""

import threading
from typing import Any, Dict, List, Mapping, Optional

from ..services.logging_service import LoggingService
from .capture_session import CaptureSession
from .frame import FrameBufferAdapter, PixelBuffer


class CaptureService:
    """Registry of capture sessions keyed by target id (e.g. camera id).

    Detaching a target destroys its session: the worker is joined so no
    thread is left holding output files open.
    """

    def __init__(self, logger: LoggingService, max_consecutive_errors: Optional[int] = None):
        self.logger = logger
        self.max_consecutive_errors = max_consecutive_errors
        self.sessions: Dict[str, CaptureSession] = {}
        self._lock = threading.Lock()
        self.logger.info("[CaptureService] Initialized")

    def attach_target(self, target_id: str) -> CaptureSession:
        """Create (or return the existing) idle session for a target."""
        with self._lock:
            session = self.sessions.get(target_id)
            if session is not None:
                return session
            session = CaptureSession(
                target_id,
                logger=self.logger,
                max_consecutive_errors=self.max_consecutive_errors,
            )
            self.sessions[target_id] = session
        self.logger.info(f"[CaptureService] Attached target {target_id}")
        return session

    def detach_target(self, target_id: str, timeout: Optional[float] = None) -> bool:
        """Destroy a target's session (stop + join worker)."""
        with self._lock:
            session = self.sessions.pop(target_id, None)
        if session is None:
            self.logger.warning(f"[CaptureService] Target {target_id} not found")
            return False
        done = session.close(timeout)
        self.logger.info(f"[CaptureService] Detached target {target_id}")
        return done

    def get_session(self, target_id: str) -> Optional[CaptureSession]:
        with self._lock:
            return self.sessions.get(target_id)

    def list_targets(self) -> List[str]:
        with self._lock:
            return list(self.sessions.keys())

    def submit(self, target_id: str, buffer: PixelBuffer) -> bool:
        """Adapt and forward one host buffer. Unknown or idle targets skip the copy."""
        session = self.get_session(target_id)
        if session is None or not session.accepting_frames():
            return False
        frame = FrameBufferAdapter.to_frame(buffer)
        return session.submit_frame(frame)

    def tick(self, buffers: Mapping[str, PixelBuffer]) -> int:
        """One host tick: submit every target's buffer. Returns frames accepted."""
        accepted = 0
        for target_id, buffer in buffers.items():
            if self.submit(target_id, buffer):
                accepted += 1
        return accepted

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Detach every target."""
        for target_id in self.list_targets():
            self.detach_target(target_id, timeout)
        self.logger.info("[CaptureService] Shut down")

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            sessions = dict(self.sessions)
        return {tid: s.get_metrics() for tid, s in sessions.items()}
