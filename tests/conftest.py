import json
import sys
from pathlib import Path

import httpx
import pytest

from firesize.core import ProcessorConfig
from firesize.core.events import MemoryEventLog

IDENTIFY_TEMPLATE = """\
import sys
sys.stdout.write({stdout!r})
sys.stderr.write({stderr!r})
sys.exit({code})
"""

CONVERT_TEMPLATE = """\
import json, shutil, sys
args = sys.argv[1:]
with open({log!r}, "a") as handle:
    handle.write(json.dumps(["convert", *args]) + "\\n")
if {code}:
    sys.stderr.write("convert: unable to open image\\n")
    sys.exit({code})
shutil.copyfile(args[0].split("[")[0], args[-1])
"""

FFMPEG_TEMPLATE = """\
import json, sys
args = sys.argv[1:]
with open({log!r}, "a") as handle:
    handle.write(json.dumps(["ffmpeg", *args]) + "\\n")
if {code}:
    sys.stderr.write("ffmpeg: conversion failed\\n")
    sys.exit({code})
with open(args[args.index("-i") + 1], "rb") as source, open(args[-1], "wb") as target:
    target.write(b"MP4:" + source.read())
"""


class FakeTools:
    """Python scripts standing in for identify, convert and ffmpeg."""

    def __init__(self, root: Path):
        self.bin_dir = root / "bin"
        self.bin_dir.mkdir()
        self.log_path = root / "tools.log"
        self.workspace_root = root / "workspaces"

    def _write(self, name: str, source: str) -> tuple[str, ...]:
        script = self.bin_dir / f"{name}.py"
        script.write_text(source, encoding="utf-8")
        return (sys.executable, str(script))

    def identify(self, stdout: str = "1\n", stderr: str = "", code: int = 0) -> tuple[str, ...]:
        return self._write("identify", IDENTIFY_TEMPLATE.format(stdout=stdout, stderr=stderr, code=code))

    def convert(self, code: int = 0) -> tuple[str, ...]:
        return self._write("convert", CONVERT_TEMPLATE.format(log=str(self.log_path), code=code))

    def ffmpeg(self, code: int = 0) -> tuple[str, ...]:
        return self._write("ffmpeg", FFMPEG_TEMPLATE.format(log=str(self.log_path), code=code))

    def config(
        self,
        frames: int = 1,
        convert_code: int = 0,
        ffmpeg_code: int = 0,
        keep_workspace: bool = False,
    ) -> ProcessorConfig:
        return ProcessorConfig(
            identify_command=self.identify(stdout="".join(f"{frames}\n" for _ in range(frames))),
            convert_command=self.convert(convert_code),
            ffmpeg_command=self.ffmpeg(ffmpeg_code),
            workspace_root=self.workspace_root,
            keep_workspace=keep_workspace,
        )

    def calls(self) -> list[list[str]]:
        if not self.log_path.exists():
            return []
        return [json.loads(line) for line in self.log_path.read_text().splitlines()]

    def workspaces(self) -> list[Path]:
        if not self.workspace_root.exists():
            return []
        return sorted(p for p in self.workspace_root.iterdir() if p.is_dir())


@pytest.fixture
def fake_tools(tmp_path):
    return FakeTools(tmp_path)


@pytest.fixture
def events():
    return MemoryEventLog()


def make_client(resources: dict[str, bytes], content_type: str = "image/png") -> httpx.Client:
    """An httpx client serving *resources* by url; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if "unreachable" in url:
            raise httpx.ConnectError("Name or service not known", request=request)
        if url in resources:
            return httpx.Response(200, content=resources[url], headers={"content-type": content_type})
        return httpx.Response(404, content=b"not found", headers={"content-type": "text/plain"})

    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


@pytest.fixture
def mock_http():
    clients = []

    def _make(resources: dict[str, bytes], content_type: str = "image/png") -> httpx.Client:
        client = make_client(resources, content_type)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
