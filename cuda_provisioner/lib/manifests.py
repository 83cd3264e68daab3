from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ..errors import ConfigError


def _manifest_dir() -> Path:
    # cuda_provisioner/lib/manifests.py -> cuda_provisioner/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping. An empty document is an empty mapping."""
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ConfigError("PyYAML required to load manifests") from e

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Manifest must be a mapping/dict: {path}")
    return data


def load_default_manifest() -> Dict[str, Any]:
    return load_yaml(_manifest_dir() / "defaults.yaml")
