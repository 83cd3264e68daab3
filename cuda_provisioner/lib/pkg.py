from __future__ import annotations

import logging
from typing import Sequence

from ..errors import InstallFailure
from .command import CmdResult, fmt_argv
from .gateway import SystemGateway

logger = logging.getLogger(__name__)


def _require_ok(r: CmdResult, what: str) -> CmdResult:
    if not r.ok:
        detail = (r.stderr or r.stdout).strip()
        raise InstallFailure(f"{what} ({r.returncode}): {fmt_argv(r.argv)}" + (f"\n{detail}" if detail else ""))
    return r


def dpkg_is_installed(gw: SystemGateway, package: str) -> bool | None:
    """Return True if dpkg reports package as installed.

    The query is by exact package name. None means dpkg-query itself is missing.
    """
    r = gw.run_probe(["dpkg-query", "-W", "-f=${Status}", package])
    if r is None:
        return None
    return r.ok and r.stdout.strip().endswith("ok installed")


def apt_update(gw: SystemGateway) -> None:
    _require_ok(gw.run_package_manager(["apt-get", "update"]), "Failed to update package lists")


def apt_upgrade(gw: SystemGateway) -> None:
    _require_ok(gw.run_package_manager(["apt-get", "upgrade", "-y"]), "Failed to upgrade packages")


def apt_autoremove(gw: SystemGateway) -> None:
    _require_ok(gw.run_package_manager(["apt-get", "autoremove", "-y"]), "Failed to remove unused packages")


def apt_install(gw: SystemGateway, packages: Sequence[str]) -> None:
    if not packages:
        return
    for package in packages:
        _require_ok(
            gw.run_package_manager(["apt-get", "install", "-y", package]),
            f"Failed to install {package}",
        )


def dpkg_install_local(gw: SystemGateway, deb_path: str) -> None:
    """Install a local .deb (registers the CUDA local repository)."""
    _require_ok(gw.run_package_manager(["dpkg", "-i", deb_path]), f"Failed to install {deb_path}")
