"""Tests for the mutating actions against the fake gateway."""

from __future__ import annotations

import pytest

from cuda_provisioner.actions import (
    install_package,
    install_toolkit,
    render_environment,
    system_upgrade,
    trust_repository_key,
    write_environment_config,
)
from cuda_provisioner.config import ProvisionConfig
from cuda_provisioner.errors import InstallFailure, TransferFailure
from cuda_provisioner.lib.fake_gateway import FakeSystemGateway
from cuda_provisioner.models import PackageSpec, PlatformContext

from .conftest import DOWNLOAD_DIR, KEYRING, NVCC_12_8

PROFILE = "/etc/profile.d/cuda.sh"


def run_install(gw: FakeSystemGateway, cfg: ProvisionConfig, platform: PlatformContext) -> None:
    install_toolkit(
        gw,
        bundle=cfg.bundle_for(platform),
        requirement=cfg.toolkit,
        download_dir=cfg.download_dir,
        pin_destination=cfg.pin_destination,
        keyring_glob=cfg.keyring_glob,
        keyring_dir=cfg.keyring_dir,
    )


class TestInstallPackage:
    def test_runs_apt_get_install(self) -> None:
        gw = FakeSystemGateway()

        install_package(gw, PackageSpec("htop"))

        assert gw.commands("pkg") == [("apt-get", "install", "-y", "htop")]
        assert "htop" in gw.installed

    def test_non_zero_exit_is_install_failure(self) -> None:
        gw = FakeSystemGateway(failing_commands=[("apt-get", "install", "-y", "htop")])

        with pytest.raises(InstallFailure, match="Failed to install htop"):
            install_package(gw, PackageSpec("htop"))


class TestSystemUpgrade:
    def test_runs_update_upgrade_autoremove_in_order(self) -> None:
        gw = FakeSystemGateway()

        system_upgrade(gw)

        assert gw.commands("pkg") == [
            ("apt-get", "update"),
            ("apt-get", "upgrade", "-y"),
            ("apt-get", "autoremove", "-y"),
        ]

    def test_stops_at_first_failing_sub_step(self) -> None:
        gw = FakeSystemGateway(failing_commands=[("apt-get", "upgrade")])

        with pytest.raises(InstallFailure, match="Failed to upgrade packages"):
            system_upgrade(gw)

        assert ("apt-get", "autoremove", "-y") not in gw.commands("pkg")


class TestEnvironmentConfig:
    def test_renders_two_export_lines(self) -> None:
        text = render_environment("/usr/local/cuda-12.8/")

        assert text.splitlines() == [
            "export PATH=/usr/local/cuda-12.8/bin${PATH:+:${PATH}}",
            "export LD_LIBRARY_PATH=/usr/local/cuda-12.8/lib64${LD_LIBRARY_PATH:+:${LD_LIBRARY_PATH}}",
        ]

    def test_writing_twice_equals_writing_once(self) -> None:
        once = FakeSystemGateway()
        twice = FakeSystemGateway()

        write_environment_config(once, "/usr/local/cuda-12.8", PROFILE)
        write_environment_config(twice, "/usr/local/cuda-12.8", PROFILE)
        write_environment_config(twice, "/usr/local/cuda-12.8", PROFILE)

        assert twice.files[PROFILE] == once.files[PROFILE]

    def test_replaces_previous_content(self) -> None:
        gw = FakeSystemGateway(files={PROFILE: "export PATH=/usr/local/cuda-11.4/bin:$PATH\n"})

        write_environment_config(gw, "/usr/local/cuda-12.8", PROFILE)

        assert "cuda-11.4" not in gw.files[PROFILE]
        assert len(gw.files[PROFILE].splitlines()) == 2

    def test_real_file_is_overwritten_not_appended(self, tmp_path) -> None:
        from cuda_provisioner.lib.gateway import RealSystemGateway

        profile = tmp_path / "profile.d" / "cuda.sh"
        gw = RealSystemGateway()

        write_environment_config(gw, "/usr/local/cuda-12.8", str(profile))
        first = profile.read_text(encoding="utf-8")
        write_environment_config(gw, "/usr/local/cuda-12.8", str(profile))

        assert profile.read_text(encoding="utf-8") == first


class TestTrustRepositoryKey:
    def test_copies_keyring_into_keyring_dir(self) -> None:
        gw = FakeSystemGateway(files={KEYRING: "key"})

        trusted = trust_repository_key(gw, "/var/cuda-repo-*/cuda-*-keyring.gpg", "/usr/share/keyrings")

        assert trusted == ["/usr/share/keyrings/cuda-0C1D2E3F-keyring.gpg"]
        assert gw.files[trusted[0]] == "key"

    def test_every_local_repo_keyring_is_trusted(self) -> None:
        gw = FakeSystemGateway(
            files={
                "/var/cuda-repo-ubuntu2404-12-8-local/cuda-AAAA-keyring.gpg": "old",
                "/var/cuda-repo-ubuntu2404-12-10-local/cuda-BBBB-keyring.gpg": "new",
            }
        )

        trusted = trust_repository_key(gw, "/var/cuda-repo-*/cuda-*-keyring.gpg", "/usr/share/keyrings")

        assert sorted(trusted) == [
            "/usr/share/keyrings/cuda-AAAA-keyring.gpg",
            "/usr/share/keyrings/cuda-BBBB-keyring.gpg",
        ]
        assert gw.files["/usr/share/keyrings/cuda-BBBB-keyring.gpg"] == "new"

    def test_missing_keyring_is_install_failure(self) -> None:
        with pytest.raises(InstallFailure, match="No CUDA keyring"):
            trust_repository_key(FakeSystemGateway(), "/var/cuda-repo-*/cuda-*-keyring.gpg", "/usr/share/keyrings")


class TestInstallToolkit:
    def test_native_sequence(self, cfg, native, make_gateway) -> None:
        gw = make_gateway()
        bundle = cfg.bundle_for(native)
        deb = f"{DOWNLOAD_DIR}/{bundle.package_file_name}"

        run_install(gw, cfg, native)

        assert [c[0] for c in gw.calls] == ["fetch", "copy", "remove", "fetch", "pkg", "copy", "pkg", "pkg", "probe"]
        assert gw.commands("fetch") == [
            (bundle.pin_url, f"{DOWNLOAD_DIR}/{bundle.pin_file_name}"),
            (bundle.package_url, deb),
        ]
        assert gw.commands("pkg") == [
            ("dpkg", "-i", deb),
            ("apt-get", "update"),
            ("apt-get", "install", "-y", "cuda-toolkit-12-8"),
        ]
        assert cfg.pin_destination in gw.files
        assert "/usr/share/keyrings/cuda-0C1D2E3F-keyring.gpg" in gw.files

    def test_wsl_uses_wsl_bundle(self, cfg, wsl, make_gateway) -> None:
        gw = make_gateway()

        run_install(gw, cfg, wsl)

        urls = [url for url, _ in gw.commands("fetch")]
        assert all("wsl-ubuntu" in url for url in urls)

    def test_pin_download_failure_stops_everything(self, cfg, native, make_gateway) -> None:
        gw = make_gateway(failing_urls=[cfg.bundle_for(native).pin_url])

        with pytest.raises(TransferFailure):
            run_install(gw, cfg, native)

        assert gw.commands("pkg") == []
        assert len(gw.commands("fetch")) == 1

    def test_package_download_failure_keeps_pin(self, cfg, native, make_gateway) -> None:
        gw = make_gateway(failing_urls=[cfg.bundle_for(native).package_url])

        with pytest.raises(TransferFailure):
            run_install(gw, cfg, native)

        assert gw.commands("pkg") == []
        assert cfg.pin_destination in gw.files

    def test_stale_installer_is_replaced(self, cfg, native, make_gateway) -> None:
        deb = f"{DOWNLOAD_DIR}/{cfg.bundle_for(native).package_file_name}"
        gw = make_gateway(files={deb: "stale"})

        run_install(gw, cfg, native)

        assert ("remove", deb) in gw.calls
        assert gw.files[deb] != "stale"

    def test_dpkg_failure_skips_reindex(self, cfg, native, make_gateway) -> None:
        gw = make_gateway(failing_commands=[("dpkg", "-i")])

        with pytest.raises(InstallFailure):
            run_install(gw, cfg, native)

        assert ("apt-get", "update") not in gw.commands("pkg")

    def test_toolkit_install_failure(self, cfg, native, make_gateway) -> None:
        gw = make_gateway(failing_commands=[("apt-get", "install", "-y", "cuda-toolkit-12-8")])

        with pytest.raises(InstallFailure, match="cuda-toolkit-12-8"):
            run_install(gw, cfg, native)

    def test_undeletable_stale_installer_is_install_failure(self, cfg, native, make_gateway) -> None:
        class LockedGateway(FakeSystemGateway):
            def remove_file(self, path: str) -> bool:
                raise PermissionError(f"Permission denied: {path}")

        gw = LockedGateway(dpkg_installs=make_gateway().dpkg_installs)

        with pytest.raises(InstallFailure, match="Failed to delete existing"):
            run_install(gw, cfg, native)

        assert len(gw.commands("fetch")) == 1
        assert gw.commands("pkg") == []

    def test_installed_version_is_confirmed(self, cfg, native, make_gateway, caplog) -> None:
        gw = make_gateway(tools={"nvcc": (0, NVCC_12_8)})

        with caplog.at_level("INFO"):
            run_install(gw, cfg, native)

        assert gw.commands("probe")[-1] == ("nvcc", "--version")
        assert "CUDA 12.8 is already installed!" in caplog.text

    def test_unconfirmed_version_only_warns(self, cfg, native, make_gateway, caplog) -> None:
        gw = make_gateway(tools={"nvcc": (0, "Cuda compilation tools, release 12.7, V12.7.1")})

        with caplog.at_level("WARNING"):
            run_install(gw, cfg, native)

        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 1
        assert "version mismatch: got 12.7, want 12.8" in warnings[0].getMessage()
        assert gw.installs == ["cuda-toolkit-12-8"]
