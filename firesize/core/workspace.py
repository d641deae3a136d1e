"""Per-request temporary workspaces."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .errors import WorkspaceError

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "_firesize"


class Workspace:
    """An exclusively owned scratch directory for one request.

    Every pipeline step writes its own distinctly named file here. The
    directory is removed by :meth:`cleanup` unless ``keep`` was requested.
    """

    def __init__(self, path: Path, keep: bool = False):
        self.path = path
        self.keep = keep

    @classmethod
    def create(cls, root: Optional[Path] = None, keep: bool = False) -> "Workspace":
        """Allocate a fresh, uniquely named directory."""

        try:
            if root is not None:
                root.mkdir(parents=True, exist_ok=True)
            path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=root))
        except OSError as exc:
            raise WorkspaceError(f"Could not create workspace: {exc}") from exc
        logger.debug("Created workspace %s", path)
        return cls(path, keep=keep)

    def file(self, name: str) -> Path:
        return self.path / name

    def cleanup(self) -> None:
        """Remove the directory and everything in it."""

        if self.keep:
            logger.info("Keeping workspace for inspection: %s", self.path)
            return
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug("Removed workspace %s", self.path)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"
