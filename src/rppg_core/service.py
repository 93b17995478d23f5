"""FastAPI service exposing the pulse pipeline to a Web UI.

The browser (or any capture client) POSTs averaged ROI colour samples to
``/ingest`` and control changes to ``/control``; a background loop issues
``process`` at a fixed interval and pushes each result to WebSocket
clients. All pipeline state lives in a PipelineWorker, so every request
becomes an ordered control message. Ingested timestamps also feed a
frame-rate estimate that recalibrates the pipeline every two seconds.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .buffers import RGBSample, ROICenter
from .config import PipelineConfig
from .framerate import FrameRateEstimator
from .worker import PipelineWorker

logger = logging.getLogger(__name__)


class ROICenterModel(BaseModel):
    x: float
    y: float


class SampleModel(BaseModel):
    r: float = Field(..., ge=0.0)
    g: float = Field(..., ge=0.0)
    b: float = Field(..., ge=0.0)
    timestamp: float
    roi_center: Optional[ROICenterModel] = None


class IngestModel(BaseModel):
    samples: list[SampleModel]
    face_detected: Optional[bool] = None


class ControlModel(BaseModel):
    face_detected: Optional[bool] = None
    sample_rate: Optional[float] = Field(None, gt=0.0, le=240.0)


def make_app(cfg: PipelineConfig | None = None) -> FastAPI:
    cfg = (cfg or PipelineConfig()).validate()
    app = FastAPI(title="rPPG Pulse Service", version="0.1.0")

    worker = PipelineWorker(cfg=cfg)
    frame_rate = FrameRateEstimator()
    metrics: dict = {"status": "init"}
    loop_task: Optional[asyncio.Task] = None
    ws_clients: set[WebSocket] = set()
    app.state.worker = worker

    @app.on_event("startup")
    async def _startup() -> None:
        nonlocal loop_task
        worker.start()
        loop_task = asyncio.create_task(process_loop())

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        nonlocal loop_task
        if loop_task:
            loop_task.cancel()
            try:
                await loop_task
            except asyncio.CancelledError:
                pass
            loop_task = None
        worker.stop()

    async def run_process() -> dict:
        result = await asyncio.wrap_future(worker.process())
        payload = result.to_dict() if result is not None else {}
        payload["status"] = "ok"
        return payload

    async def process_loop() -> None:
        nonlocal metrics
        while True:
            try:
                await asyncio.sleep(cfg.process_interval_sec)
                metrics = await run_process()
                if ws_clients:
                    msg = json.dumps(metrics)
                    dead: list[WebSocket] = []
                    for w in ws_clients:
                        try:
                            await w.send_text(msg)
                        except Exception:
                            dead.append(w)
                    for w in dead:
                        ws_clients.discard(w)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("process loop iteration failed")
                await asyncio.sleep(cfg.process_interval_sec)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    async def get_metrics() -> dict:
        return dict(metrics)

    @app.post("/process")
    async def post_process() -> dict:
        return await run_process()

    @app.post("/control")
    async def post_control(body: ControlModel) -> dict:
        data = body.model_dump(exclude_none=True)
        if "face_detected" in data:
            worker.set_face_detected(data["face_detected"])
        if "sample_rate" in data:
            worker.set_sample_rate(data["sample_rate"])
        return {"status": "ok", "applied": data}

    @app.post("/reset")
    async def post_reset() -> dict:
        frame_rate.reset()
        await asyncio.wrap_future(worker.reset())
        return {"status": "ok"}

    @app.post("/ingest")
    async def post_ingest(payload: IngestModel) -> dict:
        if payload.face_detected is not None:
            worker.set_face_detected(payload.face_detected)
        if not payload.samples:
            return {"status": "empty"}
        for s in payload.samples:
            center = ROICenter(s.roi_center.x, s.roi_center.y) if s.roi_center else None
            fps = frame_rate.tick(s.timestamp)
            if fps:
                worker.set_sample_rate(float(fps))
            worker.add_sample(RGBSample(s.r, s.g, s.b, s.timestamp), center)
        return {"status": "ok", "count": len(payload.samples)}

    @app.websocket("/ws")
    async def ws_metrics(ws: WebSocket) -> None:  # pragma: no cover - integration
        await ws.accept()
        ws_clients.add(ws)
        try:
            while True:
                # keep alive; updates are pushed from loop
                await ws.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            ws_clients.discard(ws)

    return app


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    uvicorn.run(make_app(PipelineConfig.from_env()), host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
