"""Unit tests for the local host handles (subprocess and filesystem)."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from provisioner.host import (
    CommandError,
    CommandRunner,
    CommandTimeoutError,
    ConfigWriteError,
    PackageManagerError,
    create_local_host,
)
from provisioner.host.local import (
    AptPackageManager,
    LocalFileSystem,
    SystemdServiceManager,
    TimedatectlClock,
)
from provisioner.runner import Outcome, ProvisioningRunner
from provisioner.steps import AppendLineStep, InsertAfterSectionStep, RestartServiceStep
from tests.host_test_helpers import OPENSSL_CNF


def _completed(stdout: str = "", returncode: int = 0) -> MagicMock:
    completed = MagicMock()
    completed.stdout = stdout
    completed.returncode = returncode
    return completed


class TestCommandRunner:
    @patch("provisioner.host.command.subprocess.run")
    def test_runs_without_shell_and_with_timeout(self, mock_run):
        mock_run.return_value = _completed("ok\n")

        output = CommandRunner(timeout=30).run(["apt-get", "update", "-y"])

        assert output == "ok"
        args, kwargs = mock_run.call_args
        assert args[0] == ["apt-get", "update", "-y"]
        assert kwargs["timeout"] == 30
        assert kwargs["env"]["DEBIAN_FRONTEND"] == "noninteractive"
        assert "shell" not in kwargs

    @patch("provisioner.host.command.subprocess.run")
    def test_filters_apt_cli_warning(self, mock_run):
        mock_run.return_value = _completed(
            "\nWARNING: apt does not have a stable CLI interface. Use with caution in scripts.\n\n"
            "Reading package lists...\n"
        )

        output = CommandRunner().run(["apt-get", "install", "-y", "git"])

        assert "WARNING" not in output
        assert "Reading package lists..." in output

    @patch("provisioner.host.command.subprocess.run")
    def test_non_zero_exit_raises(self, mock_run):
        mock_run.return_value = _completed("E: Unable to locate package btop\n", returncode=100)

        with pytest.raises(CommandError) as exc_info:
            CommandRunner().run(["apt-get", "install", "-y", "btop"])

        assert exc_info.value.returncode == 100
        assert exc_info.value.command == ["apt-get", "install", "-y", "btop"]
        assert "Unable to locate package btop" in str(exc_info.value)

    @patch("provisioner.host.command.subprocess.run")
    def test_non_zero_exit_allowed_without_check(self, mock_run):
        mock_run.return_value = _completed("inactive\n", returncode=3)
        assert CommandRunner().run(["systemctl", "is-active", "nginx"], check=False) == "inactive"

    @patch("provisioner.host.command.subprocess.run")
    def test_timeout_raises(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["apt-get"], timeout=5)

        with pytest.raises(CommandTimeoutError, match="timed out after 5"):
            CommandRunner(timeout=5).run(["apt-get", "update"])

    @patch("provisioner.host.command.subprocess.run")
    def test_missing_program_raises_command_error(self, mock_run):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "timedatectl")

        with pytest.raises(CommandError) as exc_info:
            CommandRunner().run(["timedatectl", "show"])
        assert exc_info.value.returncode == 127

    @patch("provisioner.host.command.subprocess.run")
    def test_succeeds(self, mock_run):
        mock_run.side_effect = [_completed(), _completed(returncode=1)]
        runner = CommandRunner()
        assert runner.succeeds(["systemctl", "is-enabled", "--quiet", "ssh"]) is True
        assert runner.succeeds(["systemctl", "is-enabled", "--quiet", "nginx"]) is False


class TestLocalFileSystem:
    def test_paths_resolve_under_root(self, tmp_path):
        files = LocalFileSystem(tmp_path)
        files.write_text("/etc/default/cpufrequtils", 'GOVERNOR="performance"\n')

        assert (tmp_path / "etc/default/cpufrequtils").read_text() == 'GOVERNOR="performance"\n'
        assert files.read_text("/etc/default/cpufrequtils") == 'GOVERNOR="performance"\n'
        assert files.is_file("/etc/default/cpufrequtils")
        assert files.is_dir("/etc/default")

    def test_list_dir_returns_host_paths(self, tmp_path):
        (tmp_path / "etc/update-motd.d").mkdir(parents=True)
        (tmp_path / "etc/update-motd.d/10-help-text").write_text("")
        (tmp_path / "etc/update-motd.d/00-header").write_text("")
        files = LocalFileSystem(tmp_path)

        assert files.list_dir("/etc/update-motd.d") == [
            "/etc/update-motd.d/00-header",
            "/etc/update-motd.d/10-help-text",
        ]
        assert files.list_dir("/etc/missing") == []

    def test_mode_size_rename_copy(self, tmp_path):
        files = LocalFileSystem(tmp_path)
        files.write_text("/etc/profile.d/00-fastfetch.sh", "fastfetch\n")
        files.set_mode("/etc/profile.d/00-fastfetch.sh", 0o755)

        assert files.get_mode("/etc/profile.d/00-fastfetch.sh") == 0o755
        assert files.size("/etc/profile.d/00-fastfetch.sh") == 10

        files.copy("/etc/profile.d/00-fastfetch.sh", "/etc/profile.d/copy.sh")
        files.rename("/etc/profile.d/00-fastfetch.sh", "/etc/profile.d/00-fastfetch.sh.disabled")
        assert files.exists("/etc/profile.d/copy.sh")
        assert files.exists("/etc/profile.d/00-fastfetch.sh.disabled")
        assert not files.exists("/etc/profile.d/00-fastfetch.sh")

    def test_read_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigWriteError) as exc_info:
            LocalFileSystem(tmp_path).read_text("/etc/ssl/openssl.cnf")
        assert exc_info.value.path == "/etc/ssl/openssl.cnf"

    def test_undecodable_bytes_round_trip(self, tmp_path):
        config = tmp_path / "etc/ssh/sshd_config"
        config.parent.mkdir(parents=True)
        config.write_bytes(b"# Jos\xe9\nUsePAM yes\n")
        files = LocalFileSystem(tmp_path)

        content = files.read_text("/etc/ssh/sshd_config")
        files.write_text("/etc/ssh/sshd_config", content + "Banner /etc/ssh/banner\n")

        assert "UsePAM yes" in content
        assert config.read_bytes() == b"# Jos\xe9\nUsePAM yes\nBanner /etc/ssh/banner\n"

    def test_crlf_line_endings_are_kept(self, tmp_path):
        config = tmp_path / "etc/ssl/openssl.cnf"
        config.parent.mkdir(parents=True)
        config.write_bytes(b"[req]\r\nprompt = no\r\n")
        files = LocalFileSystem(tmp_path)

        content = files.read_text("/etc/ssl/openssl.cnf")
        files.write_text("/etc/ssl/openssl.cnf", content)

        assert content == "[req]\r\nprompt = no\r\n"
        assert config.read_bytes() == b"[req]\r\nprompt = no\r\n"


class TestLocalFileSteps:
    def _host(self, tmp_path):
        host = create_local_host(root=tmp_path)
        host.privilege_probe = lambda: True
        return host

    def test_existing_tls_directive_leaves_file_unchanged(self, tmp_path):
        config = tmp_path / "etc/ssl/openssl.cnf"
        config.parent.mkdir(parents=True)
        original = OPENSSL_CNF.replace(
            "[system_default_sect]\n", "[system_default_sect]\nMinProtocol = TLSv1.2\n"
        ).encode()
        config.write_bytes(original)
        step = InsertAfterSectionStep(
            "tls_min_protocol",
            "/etc/ssl/openssl.cnf",
            "system_default_sect",
            "MinProtocol",
            "TLSv1.2",
            backup_path="/etc/ssl/openssl.cnf.bak",
        )

        report = ProvisioningRunner([step], self._host(tmp_path)).run()

        assert report.results[0].outcome == Outcome.SKIPPED
        assert config.read_bytes() == original
        assert not (tmp_path / "etc/ssl/openssl.cnf.bak").exists()

    @patch("provisioner.host.command.subprocess.run")
    def test_absent_service_restart_is_skipped(self, mock_run, tmp_path):
        mock_run.return_value = _completed("ssh.service loaded active running OpenBSD Secure Shell server\n")
        steps = [RestartServiceStep("nginx"), RestartServiceStep("ssh")]

        report = ProvisioningRunner(steps, self._host(tmp_path)).run()

        assert [r.outcome for r in report.results] == [Outcome.SKIPPED, Outcome.SUCCESS]
        assert mock_run.call_args_list[-1][0][0] == ["systemctl", "restart", "ssh"]

    @patch("provisioner.host.command.subprocess.run")
    def test_not_found_service_restart_is_skipped(self, mock_run, tmp_path):
        mock_run.return_value = _completed(
            "nginx.service not-found inactive dead nginx.service\n"
            "ssh.service loaded active running OpenBSD Secure Shell server\n"
        )

        report = ProvisioningRunner([RestartServiceStep("nginx")], self._host(tmp_path)).run()

        assert report.results[0].outcome == Outcome.SKIPPED
        assert ["systemctl", "restart", "nginx"] not in [c[0][0] for c in mock_run.call_args_list]

    def test_latin1_sshd_config_gets_banner_directive(self, tmp_path):
        config = tmp_path / "etc/ssh/sshd_config"
        config.parent.mkdir(parents=True)
        config.write_bytes(b"# Jos\xe9\nUsePAM yes\n")
        step = AppendLineStep(
            "sshd_banner_directive", "/etc/ssh/sshd_config", "Banner /etc/ssh/banner", critical=True
        )

        report = ProvisioningRunner([step], self._host(tmp_path)).run()

        assert report.aborted is False
        assert report.results[0].outcome == Outcome.SUCCESS
        assert config.read_bytes() == b"# Jos\xe9\nUsePAM yes\nBanner /etc/ssh/banner\n"

    def test_crlf_openssl_cnf_keeps_line_endings(self, tmp_path):
        config = tmp_path / "etc/ssl/openssl.cnf"
        config.parent.mkdir(parents=True)
        original = OPENSSL_CNF.replace("\n", "\r\n").encode()
        config.write_bytes(original)
        step = InsertAfterSectionStep(
            "tls_min_protocol",
            "/etc/ssl/openssl.cnf",
            "system_default_sect",
            "MinProtocol",
            "TLSv1.2",
            backup_path="/etc/ssl/openssl.cnf.bak",
        )

        report = ProvisioningRunner([step], self._host(tmp_path)).run()

        assert report.results[0].outcome == Outcome.SUCCESS
        updated = config.read_bytes()
        assert b"[system_default_sect]\r\nMinProtocol = TLSv1.2\r\n" in updated
        assert updated.count(b"\n") == updated.count(b"\r\n")
        assert (tmp_path / "etc/ssl/openssl.cnf.bak").read_bytes() == original


class TestAptPackageManager:
    def _manager(self, tmp_path=None):
        runner = MagicMock(spec=CommandRunner)
        files = LocalFileSystem(tmp_path) if tmp_path else MagicMock()
        return AptPackageManager(runner, files), runner

    def test_is_installed(self):
        manager, runner = self._manager()
        runner.run.return_value = "install ok installed"
        assert manager.is_installed("git") is True
        runner.run.assert_called_once_with(["dpkg-query", "-W", "-f=${Status}", "git"])

    def test_unknown_package_is_not_installed(self):
        manager, runner = self._manager()
        runner.run.side_effect = CommandError(["dpkg-query"], 1, "no packages found matching btop")
        assert manager.is_installed("btop") is False

    def test_deinstalled_package_is_not_installed(self):
        manager, runner = self._manager()
        runner.run.return_value = "deinstall ok config-files"
        assert manager.is_installed("nginx") is False

    def test_install(self):
        manager, runner = self._manager()
        manager.install(["git", "curl"])
        runner.run.assert_called_once_with(["apt-get", "install", "-y", "git", "curl"])

    def test_install_nothing_runs_nothing(self):
        manager, runner = self._manager()
        manager.install([])
        runner.run.assert_not_called()

    def test_install_failure_raises_package_manager_error(self):
        manager, runner = self._manager()
        runner.run.side_effect = CommandError(["apt-get"], 100, "E: Unable to locate package btop")
        with pytest.raises(PackageManagerError, match="btop"):
            manager.install(["btop"])

    def test_refresh_timeout_raises_package_manager_error(self):
        manager, runner = self._manager()
        runner.run.side_effect = CommandTimeoutError(["apt-get", "update", "-y"], 900)
        with pytest.raises(PackageManagerError, match="timed out"):
            manager.refresh()

    def test_add_repository(self):
        manager, runner = self._manager()
        manager.add_repository("ppa:zhangsongcui3371/fastfetch")
        runner.run.assert_called_once_with(
            ["add-apt-repository", "-y", "ppa:zhangsongcui3371/fastfetch"]
        )

    def test_has_repository_reads_deb822_sources(self, tmp_path):
        sources = tmp_path / "etc/apt/sources.list.d"
        sources.mkdir(parents=True)
        (sources / "zhangsongcui3371-ubuntu-fastfetch-noble.sources").write_text(
            "Types: deb\nURIs: https://ppa.launchpadcontent.net/zhangsongcui3371/fastfetch/ubuntu/\n"
        )
        (tmp_path / "etc/apt/sources.list").write_text("# moved to sources.list.d\n")
        manager, _ = self._manager(tmp_path)

        assert manager.has_repository("ppa:zhangsongcui3371/fastfetch") is True
        assert manager.has_repository("ppa:other/tool") is False

    def test_has_repository_without_sources(self, tmp_path):
        manager, _ = self._manager(tmp_path)
        assert manager.has_repository("ppa:zhangsongcui3371/fastfetch") is False


class TestSystemdServiceManager:
    UNITS = (
        "cron.service loaded active running Regular background program processing daemon\n"
        "ssh.service loaded active running OpenBSD Secure Shell server\n"
        "ssh.socket loaded active listening OpenBSD Secure Shell server socket\n"
    )

    def test_exists(self):
        runner = MagicMock(spec=CommandRunner)
        runner.run.return_value = self.UNITS
        services = SystemdServiceManager(runner)

        assert services.exists("ssh") is True
        assert services.exists("nginx") is False
        assert services.exists("ssh.socket") is False

    def test_not_found_unit_is_absent(self):
        runner = MagicMock(spec=CommandRunner)
        runner.run.return_value = self.UNITS + "nginx.service not-found inactive dead nginx.service\n"
        services = SystemdServiceManager(runner)

        assert services.exists("nginx") is False
        assert services.exists("cron") is True

    def test_state_queries_use_quiet_flags(self):
        runner = MagicMock(spec=CommandRunner)
        runner.succeeds.return_value = True
        services = SystemdServiceManager(runner)

        assert services.is_enabled("cpufrequtils") is True
        assert services.is_active("cpufrequtils") is True
        runner.succeeds.assert_any_call(["systemctl", "is-enabled", "--quiet", "cpufrequtils"])
        runner.succeeds.assert_any_call(["systemctl", "is-active", "--quiet", "cpufrequtils"])

    def test_actions(self):
        runner = MagicMock(spec=CommandRunner)
        services = SystemdServiceManager(runner)

        services.enable("cpufrequtils")
        services.start("cpufrequtils")
        services.restart("ssh")

        assert [c[0][0] for c in runner.run.call_args_list] == [
            ["systemctl", "enable", "cpufrequtils"],
            ["systemctl", "start", "cpufrequtils"],
            ["systemctl", "restart", "ssh"],
        ]


class TestTimedatectlClock:
    def test_get_timezone(self):
        runner = MagicMock(spec=CommandRunner)
        runner.run.return_value = "Europe/Oslo\n"
        assert TimedatectlClock(runner).get_timezone() == "Europe/Oslo"

    def test_set_timezone(self):
        runner = MagicMock(spec=CommandRunner)
        TimedatectlClock(runner).set_timezone("Australia/Melbourne")
        runner.run.assert_called_once_with(["timedatectl", "set-timezone", "Australia/Melbourne"])


class TestCreateLocalHost:
    @patch("provisioner.host.local.os.geteuid", return_value=1000)
    def test_unprivileged(self, _mock_geteuid):
        assert create_local_host().is_privileged() is False

    @patch("provisioner.host.local.os.geteuid", return_value=0)
    def test_root_is_privileged(self, _mock_geteuid):
        assert create_local_host().is_privileged() is True
