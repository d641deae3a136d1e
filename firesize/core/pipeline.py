"""Sequence the transform steps over a per-request workspace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import httpx

from . import ProcessorConfig
from .args import ProcessArgs
from .classifier import AnimationClassifier
from .events import EventLog
from .steps import FetchStep, PipelineStep, PostProcessStep, PreprocessStep, TransformStep
from .workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Final working file of a successful run, and where it lives."""

    path: Path
    args: ProcessArgs
    workspace: Workspace


class Pipeline:
    """Run steps strictly in order, threading the working file and arguments.

    The first step that raises stops the run; its workspace is cleaned up and
    the error propagates unchanged. On success the caller owns the returned
    workspace and must clean it up once the file has been served.
    """

    def __init__(self, steps: Sequence[PipelineStep], config: Optional[ProcessorConfig] = None):
        self.steps = tuple(steps)
        self.config = config or ProcessorConfig()

    @classmethod
    def default(cls, config: ProcessorConfig, client: httpx.Client, events: EventLog) -> "Pipeline":
        classifier = AnimationClassifier(events, config.identify_command, config.identify_timeout)
        return cls(
            [
                FetchStep(client, events, config.fetch_timeout, config.max_download_bytes),
                PreprocessStep(classifier, events, config.convert_command, config.coalesce_timeout),
                TransformStep(events, config.convert_command, config.transform_timeout),
                PostProcessStep(events, config.ffmpeg_command, config.video_timeout),
            ],
            config,
        )

    def run(self, args: ProcessArgs) -> PipelineResult:
        workspace = Workspace.create(self.config.workspace_root, keep=self.config.keep_workspace)
        token: Optional[Path] = None
        try:
            for step in self.steps:
                token, args = step.execute(workspace, token, args)
        except Exception:
            logger.info("Pipeline stopped at step %s", getattr(step, "name", step))
            workspace.cleanup()
            raise
        if token is None:
            workspace.cleanup()
            raise ValueError("Pipeline has no steps")
        return PipelineResult(path=token, args=args, workspace=workspace)
