from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError
from .lib.manifests import load_default_manifest, load_yaml
from .models import BundleDescriptor, PackageSpec, PlatformContext, ToolkitRequirement

logger = logging.getLogger(__name__)


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base. Mappings merge, everything else replaces."""
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any]

    @property
    def baseline_packages(self) -> List[PackageSpec]:
        names = self.raw.get("baseline_packages") or []
        if not isinstance(names, list):
            raise ConfigError("baseline_packages must be a list of package names")
        return [PackageSpec(name=str(n).strip()) for n in names if str(n).strip()]

    @property
    def _toolkit(self) -> Dict[str, Any]:
        return self.raw.get("toolkit") or {}

    @property
    def toolkit(self) -> ToolkitRequirement:
        raw_version = self._toolkit.get("version")
        if not isinstance(raw_version, str):
            # YAML reads an unquoted 12.10 as the float 12.1.
            raise ConfigError(f"toolkit.version must be a quoted string, got {raw_version!r}")
        version = raw_version.strip()
        if not version:
            raise ConfigError("toolkit.version must be set")
        package = str(self._toolkit.get("package") or f"cuda-toolkit-{version.replace('.', '-')}")
        prefix = str(self._toolkit.get("install_prefix") or f"/usr/local/cuda-{version}")
        return ToolkitRequirement(required_version=version, package=package, install_prefix=prefix.rstrip("/"))

    @property
    def pin_destination(self) -> str:
        return str(self._toolkit.get("pin_destination") or "/etc/apt/preferences.d/cuda-repository-pin-600")

    @property
    def keyring_glob(self) -> str:
        return str(self._toolkit.get("keyring_glob") or "/var/cuda-repo-*/cuda-*-keyring.gpg")

    @property
    def keyring_dir(self) -> str:
        return str(self._toolkit.get("keyring_dir") or "/usr/share/keyrings")

    @property
    def profile_script(self) -> str:
        return str(((self.raw.get("paths") or {}).get("profile_script")) or "/etc/profile.d/cuda.sh")

    @property
    def download_dir(self) -> str:
        return str(((self.raw.get("paths") or {}).get("download_dir")) or ".")

    def bundle_for(self, platform: PlatformContext) -> BundleDescriptor:
        bundles = self.raw.get("bundles") or {}
        b = bundles.get(platform.variant)
        if not isinstance(b, dict):
            raise ConfigError(f"No bundle configured for platform variant {platform.variant!r}")
        missing = [k for k in ("pin_file", "pin_url", "package_file", "package_url") if not b.get(k)]
        if missing:
            raise ConfigError(f"bundles.{platform.variant} is missing: {', '.join(missing)}")
        return BundleDescriptor(
            pin_file_name=str(b["pin_file"]),
            pin_url=str(b["pin_url"]),
            package_file_name=str(b["package_file"]),
            package_url=str(b["package_url"]),
            distro=(str(b["distro"]) if b.get("distro") else None),
        )

    def validate(self) -> "ProvisionConfig":
        self.baseline_packages
        self.toolkit
        for variant in ("wsl", "native"):
            self.bundle_for(PlatformContext(is_wsl=(variant == "wsl"), distro=""))
        return self


def load_config(path: Optional[str] = None) -> ProvisionConfig:
    """Packaged defaults, with the YAML file at path (if any) merged on top."""

    raw = load_default_manifest()
    if path:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {path}")
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError("config must be YAML")
        raw = deep_merge(raw, load_yaml(p))
        logger.info("Loaded config overrides from %s", path)

    return ProvisionConfig(raw=raw).validate()
