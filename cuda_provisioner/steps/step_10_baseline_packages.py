from __future__ import annotations

import logging
from typing import Optional

from ..actions import install_package
from ..models import PackageSpec, ProbeResult
from ..pipeline import ProvisionCtx
from ..probes import package_installed

logger = logging.getLogger(__name__)


class EnsurePackageStep:
    """One baseline package: install it unless dpkg already has it."""

    def __init__(self, package: PackageSpec) -> None:
        self.package = package
        self.step_id = f"10_package_{package.name}"

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        return package_installed(ctx.gateway, self.package)

    def apply(self, ctx: ProvisionCtx) -> None:
        install_package(ctx.gateway, self.package)
