"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Callable

import pytest

from cuda_provisioner.config import ProvisionConfig, deep_merge
from cuda_provisioner.lib.fake_gateway import FakeSystemGateway
from cuda_provisioner.lib.manifests import load_default_manifest
from cuda_provisioner.models import PlatformContext
from cuda_provisioner.pipeline import ProvisionCtx

DOWNLOAD_DIR = "/tmp/cuda-dl"
KEYRING = "/var/cuda-repo-ubuntu2404-12-8-local/cuda-0C1D2E3F-keyring.gpg"
NVCC_12_8 = "nvcc: NVIDIA (R) Cuda compiler driver\nCuda compilation tools, release 12.8, V12.8.61\n"
NVIDIA_SMI = "| NVIDIA-SMI 570.86.10   Driver Version: 570.86.10   CUDA Version: 12.8 |"


@pytest.fixture
def cfg() -> ProvisionConfig:
    """Packaged defaults with a small package list and a fixed download dir."""
    raw = deep_merge(
        load_default_manifest(),
        {"baseline_packages": ["htop", "curl", "wget"], "paths": {"download_dir": DOWNLOAD_DIR}},
    )
    return ProvisionConfig(raw=raw).validate()


@pytest.fixture
def native() -> PlatformContext:
    return PlatformContext(is_wsl=False, distro="ubuntu24.04")


@pytest.fixture
def wsl() -> PlatformContext:
    return PlatformContext(is_wsl=True, distro="ubuntu24.04")


@pytest.fixture
def make_gateway(cfg: ProvisionConfig) -> Callable[..., FakeSystemGateway]:
    """Build a FakeSystemGateway whose CUDA repo packages drop a keyring on install."""

    def _make(**kwargs) -> FakeSystemGateway:
        drops = {
            f"{DOWNLOAD_DIR}/{cfg.raw['bundles'][variant]['package_file']}": {KEYRING: "keyring"}
            for variant in ("wsl", "native")
        }
        kwargs.setdefault("dpkg_installs", drops)
        return FakeSystemGateway(**kwargs)

    return _make


@pytest.fixture
def ctx_for(cfg: ProvisionConfig, native: PlatformContext) -> Callable[..., ProvisionCtx]:
    def _ctx(gateway: FakeSystemGateway, platform: PlatformContext = native) -> ProvisionCtx:
        return ProvisionCtx(cfg=cfg, platform=platform, gateway=gateway)

    return _ctx
