"""Entry point tying the proxy fallback and the transform pipeline together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from . import ProcessorConfig, formats
from .args import ProcessArgs
from .events import EventLog
from .pipeline import Pipeline
from .proxy import open_proxy
from .workspace import Workspace
from ..utils import file_tools

logger = logging.getLogger(__name__)


@dataclass
class ProcessOutcome:
    """Either a transformed file inside a workspace or an upstream response to relay."""

    args: ProcessArgs
    path: Optional[Path] = None
    workspace: Optional[Workspace] = None
    upstream: Optional[httpx.Response] = None

    @property
    def is_proxy(self) -> bool:
        return self.upstream is not None

    @property
    def media_type(self) -> str:
        if self.upstream is not None:
            return self.upstream.headers.get("content-type", "application/octet-stream")
        if self.path is None:
            return formats.media_type_for(None)
        if self.path.suffix:
            return formats.media_type_for(self.path.suffix.lstrip("."))
        return file_tools.sniff_media_type(self.path)

    def close(self) -> None:
        """Release the workspace or upstream connection held by this outcome."""

        if self.upstream is not None:
            self.upstream.close()
        if self.workspace is not None:
            self.workspace.cleanup()


class Processor:
    """Process a remote asset url with the requested arguments."""

    def __init__(
        self,
        client: httpx.Client,
        config: Optional[ProcessorConfig] = None,
        events: Optional[EventLog] = None,
        pipeline: Optional[Pipeline] = None,
    ):
        self.client = client
        self.config = config or ProcessorConfig()
        self.events = events or EventLog()
        self.pipeline = pipeline or Pipeline.default(self.config, client, self.events)

    def process(self, args: ProcessArgs) -> ProcessOutcome:
        # No operations? Just proxy the request.
        if not args.has_operations():
            upstream = open_proxy(self.client, args.url, self.events, self.config.fetch_timeout)
            return ProcessOutcome(args=args, upstream=upstream)

        result = self.pipeline.run(args)
        logger.info("Processed %s -> %s", args.url, result.path.name)
        return ProcessOutcome(args=result.args, path=result.path, workspace=result.workspace)
