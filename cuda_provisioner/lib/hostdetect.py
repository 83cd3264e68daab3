from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..models import PlatformContext

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")
KERNEL_OSRELEASE = Path("/proc/sys/kernel/osrelease")


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        out[key.strip()] = value.strip().strip('"').strip("'")
    return out


def detect_wsl(environ: Mapping[str, str], kernel_release: Optional[str]) -> bool:
    if environ.get("WSL_DISTRO_NAME") or environ.get("WSL_INTEROP"):
        return True
    return "microsoft" in (kernel_release or "").lower()


def detect_platform(
    *,
    environ: Optional[Mapping[str, str]] = None,
    os_release_path: Path = OS_RELEASE,
    kernel_release_path: Path = KERNEL_OSRELEASE,
) -> PlatformContext:
    """Inspect the running host once; the result is passed around explicitly."""

    env = os.environ if environ is None else environ
    is_wsl = detect_wsl(env, _read_text(kernel_release_path))

    info = parse_os_release(_read_text(os_release_path) or "")
    distro = f"{info.get('ID', 'unknown')}{info.get('VERSION_ID', '')}"

    ctx = PlatformContext(is_wsl=is_wsl, distro=distro)
    logger.info("Detected platform: %s (%s)", ctx.variant, ctx.distro, extra={"status": "platform"})
    return ctx
