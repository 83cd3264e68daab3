from __future__ import annotations

import logging
from typing import Optional

from ..errors import PrerequisiteMissing
from ..models import ProbeResult
from ..pipeline import ProvisionCtx
from ..probes import gpu_present

logger = logging.getLogger(__name__)


class CheckGpuStep:
    """Gate: there is nothing to install on behalf of the operator here."""

    step_id = "20_check_gpu"

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        logger.info("Checking for NVIDIA GPU...", extra={"status": "check"})
        return gpu_present(ctx.gateway)

    def apply(self, ctx: ProvisionCtx) -> None:
        raise PrerequisiteMissing("NVIDIA GPU not detected! Install NVIDIA drivers first.", step_id=self.step_id)
