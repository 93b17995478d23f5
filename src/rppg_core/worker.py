"""Background worker that owns a PipelineOrchestrator.

Control messages are queued by any thread and applied by a single worker
thread, one at a time and in arrival order. Only the worker thread touches
the orchestrator, so no locks guard its buffers.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from queue import Empty, Queue
from typing import Callable, Optional, Tuple

from .buffers import RGBSample, ROICenter
from .config import PipelineConfig
from .orchestrator import (
    AddSample,
    Message,
    PipelineOrchestrator,
    PipelineResult,
    Process,
    Reset,
    SetFaceDetected,
    SetSampleRate,
)

logger = logging.getLogger(__name__)

_Item = Optional[Tuple[Message, "Future[Optional[PipelineResult]]"]]


class PipelineWorker:
    """Run an orchestrator on a daemon thread fed by an unbounded FIFO.

    ``post`` never blocks. Each posted message gets a Future that resolves
    to the PipelineResult for ``Process`` and to None otherwise.
    ``on_result`` (optional) is called on the worker thread for every
    result.
    """

    def __init__(
        self,
        orchestrator: Optional[PipelineOrchestrator] = None,
        cfg: Optional[PipelineConfig] = None,
        on_result: Optional[Callable[[PipelineResult], None]] = None,
    ) -> None:
        self.orchestrator = orchestrator or PipelineOrchestrator(cfg)
        self.on_result = on_result
        self._queue: "Queue[_Item]" = Queue()
        self._thread: Optional[threading.Thread] = None
        self._closing = False
        # Serializes the closing check with enqueueing so nothing lands behind the sentinel
        self._post_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._closing

    def start(self) -> None:
        if self.running:
            return
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("previous PipelineWorker thread is still draining")
        self._closing = False
        self._thread = threading.Thread(target=self._loop, name="rppg-worker", daemon=True)
        self._thread.start()
        logger.info("pipeline worker started")

    def stop(self, timeout: float = 2.0) -> None:
        """Refuse new messages, drain pending ones and stop the worker thread.

        If the thread does not finish within ``timeout`` it stays attached, so
        ``start`` cannot spawn a second consumer on the same queue.
        """
        if self._thread is None:
            return
        with self._post_lock:
            if not self._closing:
                self._closing = True
                self._queue.put(None)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("pipeline worker did not stop within %.1fs", timeout)
            return
        self._thread = None
        logger.info("pipeline worker stopped")

    def post(self, msg: Message) -> "Future[Optional[PipelineResult]]":
        fut: "Future[Optional[PipelineResult]]" = Future()
        with self._post_lock:
            if self._closing:
                raise RuntimeError("PipelineWorker is stopping")
            if not self.running:
                raise RuntimeError("PipelineWorker not started")
            self._queue.put((msg, fut))
        return fut

    # Convenience wrappers mirroring the orchestrator API
    def add_sample(self, sample: RGBSample, roi_center: Optional[ROICenter] = None) -> Future:
        return self.post(AddSample(sample, roi_center))

    def set_face_detected(self, detected: bool) -> Future:
        return self.post(SetFaceDetected(detected))

    def set_sample_rate(self, sample_rate: float) -> Future:
        return self.post(SetSampleRate(sample_rate))

    def reset(self) -> Future:
        return self.post(Reset())

    def process(self) -> "Future[Optional[PipelineResult]]":
        return self.post(Process())

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            self._handle(*item)
        self._cancel_pending()

    def _handle(self, msg: Message, fut: "Future[Optional[PipelineResult]]") -> None:
        if not fut.set_running_or_notify_cancel():
            return
        try:
            result = self.orchestrator.handle(msg)
        except Exception as exc:
            logger.exception("failed to handle %s", type(msg).__name__)
            fut.set_exception(exc)
            return
        fut.set_result(result)
        if result is not None and self.on_result is not None:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("on_result callback failed")

    def _cancel_pending(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except Empty:
                return
            if item is not None:
                item[1].cancel()
