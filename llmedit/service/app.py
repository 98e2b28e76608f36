"""FastAPI application exposing generate/modify jobs to editor integrations."""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import EditorConfig, load_config
from ..document import TextDocument
from ..errors import LLMEditError, PreconditionError, ResourceError
from ..jobs import JobOrchestrator
from ..models import JobRequest, Mode, Position, Span


class PositionModel(BaseModel):
    line: int = Field(ge=0)
    column: int = Field(default=0, ge=0)

    def to_position(self) -> Position:
        return Position(line=self.line, column=self.column)


class SelectionModel(BaseModel):
    start: PositionModel
    end: PositionModel


class JobPayload(BaseModel):
    text: str
    request: str = ""
    cursor: PositionModel = Field(default_factory=lambda: PositionModel(line=0))
    selection: Optional[SelectionModel] = None
    system: Optional[str] = None
    template: Optional[str] = None


class JobResponse(BaseModel):
    status: str
    message: str
    inserted: str = ""
    text: Optional[str] = None
    cursor: Optional[PositionModel] = None


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> JobOrchestrator:
    return JobOrchestrator(load_config())


def create_app(
    orchestrator_factory: Callable[[], JobOrchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing llmedit jobs."""

    app = FastAPI(title="llmedit Service", version="0.1.0")
    orchestrator = orchestrator_factory()

    async def get_orchestrator() -> JobOrchestrator:
        # One orchestrator per app so a new request supersedes the previous job.
        return orchestrator

    async def _run(mode: Mode, payload: JobPayload, runner: JobOrchestrator) -> JobResponse:
        selection = None
        if payload.selection is not None:
            selection = Span(
                payload.selection.start.to_position(),
                payload.selection.end.to_position(),
            )
        document = TextDocument(
            payload.text, cursor=payload.cursor.to_position(), selection=selection
        )
        request = JobRequest(
            mode=mode,
            user_request=payload.request,
            system_override=payload.system,
            template_name=payload.template,
        )
        outcome = await runner.run(request, document)
        if outcome.error is not None:
            raise outcome.error
        if not outcome.succeeded:
            return JobResponse(status=outcome.status.value, message=outcome.message)
        cursor = document.cursor_position()
        return JobResponse(
            status=outcome.status.value,
            message=outcome.message,
            inserted=outcome.text,
            text=document.text,
            cursor=PositionModel(line=cursor.line, column=cursor.column),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=JobResponse)
    async def generate(
        payload: JobPayload,
        runner: JobOrchestrator = Depends(get_orchestrator),
    ) -> JobResponse:
        return await _run(Mode.GENERATE, payload, runner)

    @app.post("/modify", response_model=JobResponse)
    async def modify(
        payload: JobPayload,
        runner: JobOrchestrator = Depends(get_orchestrator),
    ) -> JobResponse:
        return await _run(Mode.MODIFY, payload, runner)

    @app.exception_handler(PreconditionError)
    async def precondition_handler(
        _: Any, exc: PreconditionError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ResourceError)
    async def resource_handler(
        _: Any, exc: ResourceError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(LLMEditError)
    async def llmedit_error_handler(
        _: Any, exc: LLMEditError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8765, *, config: EditorConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    resolved = config or load_config()
    app = create_app(lambda: JobOrchestrator(resolved))
    uvicorn.run(app, host=host, port=port)
