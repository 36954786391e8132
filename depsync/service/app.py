"""FastAPI application entrypoint for depsync service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config import SyncConfig
from ..detector import (
    DetectedEcosystem,
    EXCLUSION_TOPICS,
    EcosystemDetector,
    discover_catalog,
    has_exclusion_topic,
    specs_from_config,
)
from ..merge import MergeEngine
from ..models import configs_equal
from ..serialization import ConfigParseFailed, dump_config, parse_config
from ..templates import TemplateError, load_templates


class EcosystemModel(BaseModel):
    name: str
    ecosystem: str
    directories: List[str]
    confidence: float

    @classmethod
    def from_detected(cls, item: DetectedEcosystem) -> "EcosystemModel":
        return cls(
            name=item.name,
            ecosystem=item.ecosystem,
            directories=item.sorted_directories,
            confidence=item.confidence,
        )


class DetectRequest(BaseModel):
    paths: List[str]
    topics: List[str] = Field(default_factory=list)


class DetectResponse(BaseModel):
    excluded: bool
    ecosystems: List[EcosystemModel]


class MergeRequest(BaseModel):
    paths: List[str]
    existing: Optional[str] = None
    yaml_indent: int = Field(default=2, ge=1)


class MergeResponse(BaseModel):
    changed: bool
    config: str
    ecosystems: List[EcosystemModel]


class HealthResponse(BaseModel):
    status: str


def _detector_for(config: SyncConfig | None) -> EcosystemDetector:
    extra = specs_from_config(config.detector.extra_indicators) if config else []
    return EcosystemDetector(discover_catalog(extra=extra))


def create_app(
    config: SyncConfig | None = None,
    *,
    engine_factory: Callable[[], MergeEngine] | None = None,
    detector: EcosystemDetector | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing detection and merging."""
    active_detector = detector or _detector_for(config)
    exclude_topics = config.detector.exclude_topics if config else EXCLUSION_TOPICS

    def _default_engine() -> MergeEngine:
        templates = load_templates(config.templates_dir) if config else {}
        return MergeEngine(templates, root_only=active_detector.catalog.root_only_tags())

    factory = engine_factory or _default_engine

    app = FastAPI(title="depsync Service", version=__version__)

    async def get_engine() -> MergeEngine:
        # Templates are re-read per request so edits on disk apply without a restart.
        return factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/detect", response_model=DetectResponse)
    async def detect(payload: DetectRequest) -> DetectResponse:
        detected = active_detector.detect(payload.paths)
        return DetectResponse(
            excluded=has_exclusion_topic(payload.topics, exclude_topics),
            ecosystems=[EcosystemModel.from_detected(item) for item in detected],
        )

    @app.post("/merge", response_model=MergeResponse)
    async def merge(
        payload: MergeRequest,
        engine: MergeEngine = Depends(get_engine),
    ) -> MergeResponse:
        def _run_merge() -> MergeResponse:
            detected = active_detector.detect(payload.paths)
            existing = parse_config(payload.existing) if payload.existing else None
            merged = engine.merge(existing, detected)
            return MergeResponse(
                changed=not configs_equal(existing, merged),
                config=dump_config(merged, indent=payload.yaml_indent),
                ecosystems=[EcosystemModel.from_detected(item) for item in detected],
            )

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _run_merge)

    @app.exception_handler(ConfigParseFailed)
    async def parse_error_handler(
        _: Any, exc: ConfigParseFailed
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(TemplateError)
    async def template_error_handler(
        _: Any, exc: TemplateError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app


def run_service(
    config: SyncConfig | None = None, host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app(config)
    uvicorn.run(app, host=host, port=port)


__all__ = [
    "DetectRequest",
    "DetectResponse",
    "HealthResponse",
    "MergeRequest",
    "MergeResponse",
    "create_app",
    "run_service",
]
