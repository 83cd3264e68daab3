"""The machine boundary.

Probes and actions never touch the host directly; everything goes through a
SystemGateway so the orchestration can run against FakeSystemGateway in tests.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


class SystemGateway(ABC):
    @abstractmethod
    def run_package_manager(self, argv: Sequence[str]) -> CmdResult:
        """Run a mutating package-manager command (apt-get, dpkg -i).

        Never raises on a non-zero exit; callers inspect the result.
        """

    @abstractmethod
    def run_probe(self, argv: Sequence[str], *, search_path: Sequence[str] = ()) -> Optional[CmdResult]:
        """Run a read-only query tool.

        Returns None when the executable cannot be found. search_path entries
        are looked up before the inherited PATH.
        """

    @abstractmethod
    def fetch_url(self, url: str, dest: str) -> CmdResult:
        """Download url to the file dest."""

    @abstractmethod
    def write_file(self, path: str, contents: str) -> None:
        """Replace the contents of path, creating parent directories."""

    @abstractmethod
    def find_files(self, pattern: str) -> List[str]:
        ...

    @abstractmethod
    def copy_file(self, src: str, dst: str) -> None:
        ...

    @abstractmethod
    def remove_file(self, path: str) -> bool:
        """Remove path if it exists; return whether something was removed."""


class RealSystemGateway(SystemGateway):
    """Shells out through run_cmd. Mutations are skipped when dry_run is set."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run

    def run_package_manager(self, argv: Sequence[str]) -> CmdResult:
        try:
            return run_cmd(argv, dry_run=self.dry_run)
        except FileNotFoundError as e:
            return CmdResult(argv=list(argv), returncode=127, stdout="", stderr=str(e))

    def run_probe(self, argv: Sequence[str], *, search_path: Sequence[str] = ()) -> Optional[CmdResult]:
        path = os.pathsep.join([*search_path, os.environ.get("PATH", os.defpath)])
        exe = shutil.which(argv[0], path=path)
        if exe is None:
            logger.debug("Probe tool not found: %s", argv[0])
            return None
        return run_cmd([exe, *argv[1:]])

    def fetch_url(self, url: str, dest: str) -> CmdResult:
        argv = ["wget", "-q", "-O", dest, url]
        try:
            r = run_cmd(argv, dry_run=self.dry_run)
        except FileNotFoundError as e:
            return CmdResult(argv=argv, returncode=127, stdout="", stderr=str(e))
        if not r.ok and not self.dry_run:
            # wget -O leaves an empty file behind on failure.
            Path(dest).unlink(missing_ok=True)
        return r

    def write_file(self, path: str, contents: str) -> None:
        p = Path(path)
        if self.dry_run:
            logger.info("Would write %s", str(p))
            return
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(contents, encoding="utf-8")

    def find_files(self, pattern: str) -> List[str]:
        found = sorted(glob.glob(pattern))
        if not found and self.dry_run:
            # Be permissive in dry-run: earlier steps that would create the file did not run.
            logger.info("Would match %s", pattern)
            return [pattern]
        return found

    def copy_file(self, src: str, dst: str) -> None:
        if self.dry_run:
            logger.info("Would copy %s -> %s", src, dst)
            return
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(src, dst)

    def remove_file(self, path: str) -> bool:
        p = Path(path)
        if not p.exists():
            return False
        if self.dry_run:
            logger.info("Would delete %s", str(p))
            return True
        p.unlink()
        return True
