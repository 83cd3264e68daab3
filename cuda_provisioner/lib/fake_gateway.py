"""In-memory SystemGateway for tests.

Simulates the dpkg database, the presence and output of query tools, download
outcomes and a flat filesystem. Every call is appended to ``calls`` so tests
can assert on what ran and in which order.
"""

from __future__ import annotations

import fnmatch
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .command import CmdResult
from .gateway import SystemGateway


class FakeSystemGateway(SystemGateway):
    def __init__(
        self,
        *,
        installed: Sequence[str] = (),
        tools: Optional[Dict[str, Tuple[int, str]]] = None,
        files: Optional[Dict[str, str]] = None,
        failing_commands: Sequence[Tuple[str, ...]] = (),
        failing_urls: Sequence[str] = (),
        dpkg_installs: Optional[Dict[str, Dict[str, str]]] = None,
    ) -> None:
        self.installed: Set[str] = set(installed)
        # tool name -> (returncode, stdout); absent tools are not on PATH.
        self.tools: Dict[str, Tuple[int, str]] = dict(tools or {})
        self.files: Dict[str, str] = dict(files or {})
        self.failing_commands = [tuple(c) for c in failing_commands]
        self.failing_urls = set(failing_urls)
        # local .deb path -> files it places on disk when installed
        self.dpkg_installs = dict(dpkg_installs or {})
        self.calls: List[Tuple[str, ...]] = []

    # -- helpers for assertions -------------------------------------------

    def commands(self, kind: str) -> List[Tuple[str, ...]]:
        return [c[1:] for c in self.calls if c[0] == kind]

    @property
    def installs(self) -> List[str]:
        return [argv[-1] for argv in self.commands("pkg") if argv[:3] == ("apt-get", "install", "-y")]

    # -- SystemGateway ------------------------------------------------------

    def _fails(self, argv: Sequence[str]) -> bool:
        argv = tuple(argv)
        return any(argv[: len(prefix)] == prefix for prefix in self.failing_commands)

    def run_package_manager(self, argv: Sequence[str]) -> CmdResult:
        self.calls.append(("pkg", *argv))
        if self._fails(argv):
            return CmdResult(argv=list(argv), returncode=100, stdout="", stderr="E: simulated failure")
        if tuple(argv[:3]) == ("apt-get", "install", "-y"):
            self.installed.update(argv[3:])
        elif tuple(argv[:2]) == ("dpkg", "-i"):
            for path in argv[2:]:
                if path not in self.files:
                    return CmdResult(argv=list(argv), returncode=2, stdout="", stderr=f"cannot access {path}")
                self.files.update(self.dpkg_installs.get(path, {}))
        return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")

    def run_probe(self, argv: Sequence[str], *, search_path: Sequence[str] = ()) -> Optional[CmdResult]:
        self.calls.append(("probe", *argv))
        tool = argv[0]
        if tool == "dpkg-query" and tool not in self.tools:
            name = argv[-1]
            if name in self.installed:
                return CmdResult(argv=list(argv), returncode=0, stdout="install ok installed", stderr="")
            return CmdResult(argv=list(argv), returncode=1, stdout="", stderr=f"no packages found matching {name}")
        if tool not in self.tools:
            return None
        code, out = self.tools[tool]
        return CmdResult(argv=list(argv), returncode=code, stdout=out, stderr="")

    def fetch_url(self, url: str, dest: str) -> CmdResult:
        self.calls.append(("fetch", url, dest))
        argv = ["wget", "-q", "-O", dest, url]
        if url in self.failing_urls:
            return CmdResult(argv=argv, returncode=8, stdout="", stderr="ERROR 404: Not Found.")
        self.files[dest] = f"downloaded from {url}"
        return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

    def write_file(self, path: str, contents: str) -> None:
        self.calls.append(("write", path))
        self.files[path] = contents

    def find_files(self, pattern: str) -> List[str]:
        return sorted(p for p in self.files if fnmatch.fnmatch(p, pattern))

    def copy_file(self, src: str, dst: str) -> None:
        self.calls.append(("copy", src, dst))
        if src not in self.files:
            raise FileNotFoundError(src)
        self.files[dst] = self.files[src]

    def remove_file(self, path: str) -> bool:
        self.calls.append(("remove", path))
        return self.files.pop(path, None) is not None
