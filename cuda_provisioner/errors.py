from __future__ import annotations

from typing import Optional


class ProvisionError(RuntimeError):
    """Base class for every fatal provisioning failure."""

    exit_code = 1

    def __init__(self, message: str, *, step_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.step_id = step_id


class PrerequisiteMissing(ProvisionError):
    """Something the operator must fix out-of-band (driver, privileges)."""


class TransferFailure(ProvisionError):
    """A download failed. Already-fetched artifacts are left in place."""


class InstallFailure(ProvisionError):
    """The package manager, dpkg or a file copy reported an error."""


class ConfigError(ProvisionError):
    exit_code = 2
