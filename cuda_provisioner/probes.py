"""Read-only checks of machine state.

Each probe returns a ProbeResult; none of them mutate anything. The
orchestrator uses them to decide whether the paired action runs.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .lib.gateway import SystemGateway
from .lib.pkg import dpkg_is_installed
from .models import PackageSpec, ProbeResult, ToolkitRequirement

logger = logging.getLogger(__name__)

# "Cuda compilation tools, release 12.8, V12.8.61" -> "12.8"
_NVCC_RELEASE_RE = re.compile(r"release\s+([^,\s]+)")


def parse_nvcc_version(output: str) -> Optional[str]:
    m = _NVCC_RELEASE_RE.search(output)
    return m.group(1) if m else None


def package_installed(gw: SystemGateway, package: PackageSpec) -> ProbeResult:
    installed = dpkg_is_installed(gw, package.name)
    if installed is None:
        return ProbeResult.unknown("dpkg-query not available")
    if installed:
        return ProbeResult.ok(f"{package.name} is already installed.")
    return ProbeResult.missing(f"{package.name} is not installed")


def gpu_present(gw: SystemGateway) -> ProbeResult:
    r = gw.run_probe(["nvidia-smi"])
    if r is None:
        return ProbeResult.missing("nvidia-smi not found")
    if not r.ok:
        return ProbeResult.missing(f"nvidia-smi exited with {r.returncode}")
    return ProbeResult.ok("NVIDIA GPU detected!")


def toolkit_version(gw: SystemGateway, requirement: ToolkitRequirement) -> ProbeResult:
    """Compare the installed nvcc release to the required version.

    Only an exact string match is accepted. A newer or older toolkit is
    reported the same way as a missing one so that the required version gets
    installed over it.
    """

    want = requirement.required_version
    r = gw.run_probe(["nvcc", "--version"], search_path=[f"{requirement.install_prefix}/bin"])
    if r is None:
        return ProbeResult.missing("not installed")
    if not r.ok:
        return ProbeResult.unknown(f"nvcc --version exited with {r.returncode}")

    got = parse_nvcc_version(r.stdout)
    if got is None:
        return ProbeResult.unknown("could not find a release version in nvcc output")
    if got != want:
        return ProbeResult.missing(f"version mismatch: got {got}, want {want}")
    return ProbeResult.ok(f"CUDA {want} is already installed!")
