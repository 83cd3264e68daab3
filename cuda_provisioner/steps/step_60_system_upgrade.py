from __future__ import annotations

from typing import Optional

from ..actions import system_upgrade
from ..models import ProbeResult
from ..pipeline import ProvisionCtx


class SystemUpgradeStep:
    step_id = "60_system_upgrade"

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        return None

    def apply(self, ctx: ProvisionCtx) -> None:
        system_upgrade(ctx.gateway)
