from __future__ import annotations

import logging
from typing import Optional

from ..actions import write_environment_config
from ..models import ProbeResult
from ..pipeline import ProvisionCtx

logger = logging.getLogger(__name__)


class CudaEnvStep:
    """Always rewrites the profile script; the content is fixed, so reruns converge."""

    def __init__(self, step_id: str = "30_cuda_env") -> None:
        self.step_id = step_id

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        return None

    def apply(self, ctx: ProvisionCtx) -> None:
        write_environment_config(ctx.gateway, ctx.cfg.toolkit.install_prefix, ctx.cfg.profile_script)
        logger.info("CUDA environment variables set up successfully.", extra={"status": "ok"})
