from .step_10_baseline_packages import EnsurePackageStep
from .step_20_check_gpu import CheckGpuStep
from .step_30_cuda_env import CudaEnvStep
from .step_40_install_toolkit import InstallToolkitStep
from .step_60_system_upgrade import SystemUpgradeStep

__all__ = [
    "EnsurePackageStep",
    "CheckGpuStep",
    "CudaEnvStep",
    "InstallToolkitStep",
    "SystemUpgradeStep",
]
