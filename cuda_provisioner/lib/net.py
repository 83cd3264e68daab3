from __future__ import annotations

import logging

from ..errors import TransferFailure
from .gateway import SystemGateway

logger = logging.getLogger(__name__)


def download(gw: SystemGateway, url: str, dest: str) -> str:
    """Fetch url to dest. No retry: a failed transfer is fatal."""

    logger.info("Downloading %s from %s...", dest, url, extra={"status": "download"})
    r = gw.fetch_url(url, dest)
    if not r.ok:
        detail = (r.stderr or r.stdout).strip()
        raise TransferFailure(f"Failed to download {dest} from {url}" + (f": {detail}" if detail else ""))
    return dest
