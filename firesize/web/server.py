"""FastAPI surface for remote media processing."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, StreamingResponse
from pydantic import BaseModel, Field, ValidationError, field_validator
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from ..core import ProcessorConfig
from ..core.args import ProcessArgs, split_request_path
from ..core.errors import (
    CommandError,
    CommandTimeoutError,
    FetchError,
    InvalidArgumentsError,
    WorkspaceError,
)
from ..core.events import EventLog
from ..core.processor import ProcessOutcome, Processor
from ..core.proxy import iter_body
from ..utils import file_tools, validators

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("FIRESIZE_ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]


class ProcessRequest(BaseModel):
    """Query-string form of a processing request."""

    url: str
    size: Optional[str] = None
    gravity: Optional[str] = None
    frame: Optional[int] = Field(None, ge=0)
    quality: Optional[int] = Field(None, ge=1, le=100)
    format: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value):
        return validators.validate_url(value)

    @field_validator("size")
    @classmethod
    def _check_size(cls, value):
        return validators.parse_geometry(value)

    @field_validator("gravity")
    @classmethod
    def _check_gravity(cls, value):
        return validators.parse_gravity(value)

    @field_validator("format")
    @classmethod
    def _check_format(cls, value):
        return validators.parse_format(value)

    def to_args(self) -> ProcessArgs:
        return ProcessArgs(
            url=self.url,
            request_format=self.format,
            format=self.format,
            size=self.size,
            gravity=self.gravity,
            frame=self.frame,
            quality=self.quality,
        )


def create_app(
    config: Optional[ProcessorConfig] = None,
    client: Optional[httpx.Client] = None,
    events: Optional[EventLog] = None,
) -> FastAPI:
    config = config or ProcessorConfig.from_env()
    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True)
    processor = Processor(client, config, events or EventLog())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        yield
        if owns_client:
            client.close()

    app = FastAPI(title="Firesize", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )
    app.state.processor = processor

    @app.get("/health")
    async def health() -> dict[str, Any]:
        tools = file_tools.discover_tools(
            [config.identify_command, config.convert_command, config.ffmpeg_command]
        )
        return {"status": "ok", "tools": tools}

    @app.get("/process")
    async def process_query(request: Request) -> Response:
        try:
            args = ProcessRequest.model_validate(dict(request.query_params)).to_args()
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return await _respond(processor, args)

    @app.get("/{options:path}")
    async def process_path(request: Request, options: str) -> Response:
        raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
        try:
            segments, url = split_request_path(path, request.url.query)
            args = ProcessArgs.from_path(segments, url)
        except InvalidArgumentsError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return await _respond(processor, args)

    return app


class _CleanupMixin:
    """Run ``cleanup`` once the response is done, even if sending it fails."""

    cleanup: Callable[[], None]

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await run_in_threadpool(self.cleanup)


class OutcomeFileResponse(_CleanupMixin, FileResponse):
    pass


class OutcomeStreamingResponse(_CleanupMixin, StreamingResponse):
    pass


async def _respond(processor: Processor, args: ProcessArgs) -> Response:
    """Run the processor off the event loop and turn its outcome into a response."""

    # The worker thread finishes even if this request is cancelled meanwhile.
    finished: list[ProcessOutcome] = []
    handed_off = False
    try:
        try:
            outcome = await run_in_threadpool(_process_into, processor, args, finished)
        except FetchError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except CommandTimeoutError as exc:
            raise HTTPException(status_code=504, detail=str(exc)) from exc
        except (CommandError, WorkspaceError) as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected failure while processing %s", args.url)
            raise HTTPException(status_code=500, detail="Unexpected error") from exc

        response = _proxy_response(outcome) if outcome.is_proxy else _file_response(outcome)
        handed_off = True
        return response
    finally:
        if not handed_off:
            for leftover in finished:
                leftover.close()


def _process_into(processor: Processor, args: ProcessArgs, finished: list[ProcessOutcome]) -> ProcessOutcome:
    outcome = processor.process(args)
    finished.append(outcome)
    return outcome


def _file_response(outcome: ProcessOutcome) -> OutcomeFileResponse:
    response = OutcomeFileResponse(outcome.path, media_type=outcome.media_type)
    response.cleanup = outcome.close
    return response


def _proxy_response(outcome: ProcessOutcome) -> OutcomeStreamingResponse:
    upstream = outcome.upstream
    response = OutcomeStreamingResponse(
        iter_body(upstream),
        status_code=upstream.status_code,
        media_type=outcome.media_type,
    )
    response.cleanup = outcome.close
    return response


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("firesize.web.server:app", host="0.0.0.0", port=8000, reload=True)
