from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config import ProvisionConfig, load_config
from .errors import ConfigError, PrerequisiteMissing, ProvisionError
from .lib.gateway import RealSystemGateway, SystemGateway
from .lib.hostdetect import detect_platform
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .models import Outcome, PipelineResult, PlatformContext
from .pipeline import ProvisionCtx, Step, run_pipeline
from .steps import CheckGpuStep, CudaEnvStep, EnsurePackageStep, InstallToolkitStep, SystemUpgradeStep

logger = logging.getLogger(__name__)


def build_steps(cfg: ProvisionConfig) -> List[Step]:
    steps: List[Step] = [EnsurePackageStep(p) for p in cfg.baseline_packages]
    steps += [
        CheckGpuStep(),
        CudaEnvStep("30_cuda_env"),
        InstallToolkitStep(),
        CudaEnvStep("50_cuda_env_post_install"),
        SystemUpgradeStep(),
    ]
    return steps


def run(
    *,
    cfg: ProvisionConfig,
    gateway: SystemGateway,
    platform: Optional[PlatformContext] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Provision the host once. Failures are recorded in the result, not raised."""

    logger.info("Starting system setup...", extra={"status": "start"})
    ctx = ProvisionCtx(cfg=cfg, platform=platform or detect_platform(), gateway=gateway)

    steps = build_steps(cfg)
    if stop_after is not None and stop_after not in {s.step_id for s in steps}:
        raise ConfigError(f"Unknown step id for --stop-after: {stop_after}")

    result = run_pipeline(ctx=ctx, steps=steps, stop_after=stop_after)

    logger.info(
        "Summary: %d performed, %d already satisfied",
        len(result.step_ids(Outcome.PERFORMED)),
        len(result.step_ids(Outcome.SATISFIED)),
    )
    if result.ok:
        logger.info("CUDA setup completed successfully!", extra={"status": "done"})
    return result


def require_root() -> None:
    if os.geteuid() != 0:
        raise PrerequisiteMissing("Mutating steps need root; re-run with sudo (or use --dry-run).")


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="cuda-provision",
        description="Install baseline packages and the CUDA toolkit, then upgrade the system.",
    )
    p.add_argument("--config", default=None, help="YAML file merged over the packaged defaults")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to provisioning log")
    p.add_argument("--stop-after", default=None, help="Stop after step_id (e.g. 20_check_gpu)")
    p.add_argument("--dry-run", action="store_true", help="Log mutating commands without running them")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log)

    try:
        cfg = load_config(args.config)
        if not args.dry_run:
            require_root()
        result = run(cfg=cfg, gateway=RealSystemGateway(dry_run=args.dry_run), stop_after=args.stop_after)
    except ProvisionError as e:
        logger.error("Error: %s", e)
        return e.exit_code
    except Exception:
        logger.exception("Provisioning failed")
        raise

    return 0 if result.ok else 1
