from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .config import ProvisionConfig
from .errors import ProvisionError
from .lib.gateway import SystemGateway
from .models import Outcome, PipelineResult, PlatformContext, ProbeResult, ProbeStatus, RunResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionCtx:
    cfg: ProvisionConfig
    platform: PlatformContext
    gateway: SystemGateway


class Step(Protocol):
    """A single idempotent step.

    probe() returns None for steps that always run (upgrade, env config).
    apply() raises ProvisionError on failure.
    """

    step_id: str

    def probe(self, ctx: ProvisionCtx) -> Optional[ProbeResult]:
        ...

    def apply(self, ctx: ProvisionCtx) -> None:
        ...


def run_pipeline(
    *,
    ctx: ProvisionCtx,
    steps: Sequence[Step],
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run steps in order: skip-if-satisfied, stop at the first failure."""

    results: List[RunResult] = []

    for step in steps:
        try:
            check = step.probe(ctx)
            if check is not None and check.satisfied:
                logger.info("%s", check.reason or f"Skipping {step.step_id} (already satisfied)", extra={"status": "ok"})
                results.append(RunResult(step.step_id, Outcome.SATISFIED, check.reason))
            else:
                if check is not None and check.status is ProbeStatus.UNKNOWN:
                    logger.warning("Could not determine state for %s (%s); running it", step.step_id, check.reason)
                elif check is not None:
                    logger.debug("Running %s: %s", step.step_id, check.reason)
                step.apply(ctx)
                results.append(RunResult(step.step_id, Outcome.PERFORMED, check.reason if check else ""))
        except ProvisionError as e:
            if e.step_id is None:
                e.step_id = step.step_id
            logger.error("Error: %s", e)
            results.append(RunResult(step.step_id, Outcome.FAILED, str(e)))
            break

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    return PipelineResult(results=results)
