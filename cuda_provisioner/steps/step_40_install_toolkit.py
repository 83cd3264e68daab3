from __future__ import annotations

import logging
from typing import Optional

from ..actions import install_toolkit
from ..models import ProbeResult
from ..pipeline import ProvisionCtx
from ..probes import toolkit_version

logger = logging.getLogger(__name__)


class InstallToolkitStep:
    step_id = "40_install_toolkit"

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        r = toolkit_version(ctx.gateway, ctx.cfg.toolkit)
        if not r.satisfied:
            logger.info("CUDA %s required: %s", ctx.cfg.toolkit.required_version, r.reason, extra={"status": "check"})
        return r

    def apply(self, ctx: ProvisionCtx) -> None:
        bundle = ctx.cfg.bundle_for(ctx.platform)
        if ctx.platform.is_wsl:
            logger.info("Installing CUDA for WSL 2...", extra={"status": "platform"})
        else:
            logger.info("Installing CUDA for %s...", bundle.distro or ctx.platform.distro, extra={"status": "platform"})
            if bundle.distro and bundle.distro != ctx.platform.distro:
                logger.warning(
                    "The native CUDA bundle targets %s but this host is %s", bundle.distro, ctx.platform.distro
                )

        install_toolkit(
            ctx.gateway,
            bundle=bundle,
            requirement=ctx.cfg.toolkit,
            download_dir=ctx.cfg.download_dir,
            pin_destination=ctx.cfg.pin_destination,
            keyring_glob=ctx.cfg.keyring_glob,
            keyring_dir=ctx.cfg.keyring_dir,
        )
