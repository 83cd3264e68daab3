"""Mutating provisioning steps.

Every action is safe to repeat. Failures are raised as ProvisionError
subclasses; nothing here retries or rolls back.
"""

from __future__ import annotations

import logging
import posixpath
from typing import List

from .errors import InstallFailure
from .lib.gateway import SystemGateway
from .lib.net import download
from .lib.pkg import apt_autoremove, apt_install, apt_update, apt_upgrade, dpkg_install_local
from .models import BundleDescriptor, PackageSpec, ToolkitRequirement
from .probes import toolkit_version

logger = logging.getLogger(__name__)


def install_package(gw: SystemGateway, package: PackageSpec) -> None:
    logger.info("Installing %s...", package.name, extra={"status": "install"})
    apt_install(gw, [package.name])


def system_upgrade(gw: SystemGateway) -> None:
    logger.info("Updating and upgrading the system...", extra={"status": "update"})
    apt_update(gw)
    apt_upgrade(gw)
    apt_autoremove(gw)
    logger.info("System updated and upgraded.", extra={"status": "ok"})


def render_environment(install_prefix: str) -> str:
    prefix = install_prefix.rstrip("/")
    return (
        f"export PATH={prefix}/bin${{PATH:+:${{PATH}}}}\n"
        f"export LD_LIBRARY_PATH={prefix}/lib64${{LD_LIBRARY_PATH:+:${{LD_LIBRARY_PATH}}}}\n"
    )


def write_environment_config(gw: SystemGateway, install_prefix: str, profile_script: str) -> None:
    """Replace profile_script with the two CUDA export lines."""

    logger.info("Setting up CUDA environment variables in %s...", profile_script, extra={"status": "configure"})
    try:
        gw.write_file(profile_script, render_environment(install_prefix))
    except OSError as e:
        raise InstallFailure(f"Failed to write {profile_script}: {e}") from e


def _copy(gw: SystemGateway, src: str, dst: str) -> None:
    try:
        gw.copy_file(src, dst)
    except OSError as e:
        raise InstallFailure(f"Failed to copy {src} to {dst}: {e}") from e


def _remove_stale(gw: SystemGateway, path: str) -> None:
    try:
        removed = gw.remove_file(path)
    except OSError as e:
        raise InstallFailure(f"Failed to delete existing {path}: {e}") from e
    if removed:
        logger.info("Deleted existing %s", path, extra={"status": "delete"})


def trust_repository_key(gw: SystemGateway, keyring_glob: str, keyring_dir: str) -> List[str]:
    """Copy every keyring dropped by a local CUDA repository package into keyring_dir.

    Older local repositories may still sit next to the one just installed;
    their keyrings are copied too so the new one is never missed.
    This is the only key-trust mechanism; no public key is fetched.
    """

    found = gw.find_files(keyring_glob)
    if not found:
        raise InstallFailure(f"No CUDA keyring matching {keyring_glob}")
    trusted: List[str] = []
    for keyring in found:
        dst = posixpath.join(keyring_dir, posixpath.basename(keyring))
        _copy(gw, keyring, dst)
        logger.info("Trusted repository keyring %s", dst)
        trusted.append(dst)
    return trusted


def verify_toolkit(gw: SystemGateway, requirement: ToolkitRequirement) -> bool:
    """Re-check nvcc after installing. Reports only; never aborts the run."""

    r = toolkit_version(gw, requirement)
    if r.satisfied:
        logger.info("%s", r.reason, extra={"status": "ok"})
    else:
        logger.warning(
            "CUDA %s was installed but nvcc does not confirm it yet (%s)", requirement.required_version, r.reason
        )
    return r.satisfied


def install_toolkit(
    gw: SystemGateway,
    *,
    bundle: BundleDescriptor,
    requirement: ToolkitRequirement,
    download_dir: str,
    pin_destination: str,
    keyring_glob: str,
    keyring_dir: str,
) -> None:
    """Fetch, register and install the CUDA toolkit from its local repository package.

    The chain is strictly linear: pin, installer package, dpkg -i, keyring,
    apt-get update, toolkit install. The first failure propagates and nothing
    after it runs. A final nvcc check is logged but is not fatal.
    """

    pin_path = posixpath.join(download_dir, bundle.pin_file_name)
    deb_path = posixpath.join(download_dir, bundle.package_file_name)

    download(gw, bundle.pin_url, pin_path)
    _copy(gw, pin_path, pin_destination)

    _remove_stale(gw, deb_path)
    download(gw, bundle.package_url, deb_path)

    dpkg_install_local(gw, deb_path)
    trust_repository_key(gw, keyring_glob, keyring_dir)

    logger.info("Updating package list...", extra={"status": "update"})
    apt_update(gw)

    logger.info("Installing CUDA Toolkit %s...", requirement.required_version, extra={"status": "configure"})
    apt_install(gw, [requirement.package])
    logger.info("CUDA Toolkit %s installed successfully.", requirement.required_version, extra={"status": "ok"})

    verify_toolkit(gw, requirement)
