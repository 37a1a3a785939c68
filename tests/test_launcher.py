from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import Mock

import psutil
import pytest

from devctl.dev import launcher as launcher_module
from devctl.dev.launcher import (
    FollowUnavailableError,
    SubprocessLauncher,
    TailFollower,
    build_follow_command,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX sessions and tail")


class TestAvailabilityProbe:
    def test_working_command(self, tmp_path: Path) -> None:
        assert SubprocessLauncher().is_available([sys.executable, "--version"], tmp_path)

    def test_failing_command(self, tmp_path: Path) -> None:
        probe = [sys.executable, "-c", "import sys; sys.exit(1)"]
        assert SubprocessLauncher().is_available(probe, tmp_path) is False

    def test_missing_executable(self, tmp_path: Path) -> None:
        probe = ["definitely-not-a-real-command-devctl", "--help"]
        assert SubprocessLauncher().is_available(probe, tmp_path) is False

    def test_probe_timeout(self, tmp_path: Path) -> None:
        probe = [sys.executable, "-c", "import time; time.sleep(30)"]
        assert SubprocessLauncher(probe_timeout=0.5).is_available(probe, tmp_path) is False


class TestLaunch:
    def test_output_is_appended_to_log(self, tmp_path: Path) -> None:
        log_file = tmp_path / "dev.log"
        log_file.write_text("earlier\n")
        script = tmp_path / "server.py"
        script.write_text(
            "import os, sys\n"
            "print('hello from stdout', flush=True)\n"
            "print('hello from stderr', file=sys.stderr, flush=True)\n"
            "print('cwd=' + os.getcwd(), flush=True)\n"
        )

        pid = SubprocessLauncher().launch(
            [sys.executable, str(script)], tmp_path, log_file
        )
        psutil.Process(pid).wait(timeout=10)

        log = log_file.read_text()
        assert log.startswith("earlier\n")
        assert "hello from stdout" in log
        assert "hello from stderr" in log
        assert f"cwd={tmp_path.resolve()}" in log or f"cwd={tmp_path}" in log

    @posix_only
    def test_child_runs_in_its_own_session(self, tmp_path: Path) -> None:
        log_file = tmp_path / "dev.log"
        pid = SubprocessLauncher().launch(
            [sys.executable, "-c", "import time; time.sleep(30)"], tmp_path, log_file
        )
        try:
            assert os.getsid(pid) == pid
            assert os.getsid(pid) != os.getsid(0)
        finally:
            proc = psutil.Process(pid)
            proc.kill()
            proc.wait(timeout=10)

    def test_missing_executable_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SubprocessLauncher().launch(
                ["definitely-not-a-real-command-devctl"], tmp_path, tmp_path / "dev.log"
            )


class TestFollowCommand:
    @posix_only
    def test_tail_command(self) -> None:
        assert build_follow_command(Path("/p/logs/dev.log"), 50) == [
            "tail",
            "-n",
            "50",
            "-f",
            "/p/logs/dev.log",
        ]

    @pytest.mark.skipif(os.name != "nt", reason="Windows follow command")
    def test_powershell_command(self) -> None:
        cmd = build_follow_command(Path("C:/p/logs/dev.log"), 50)
        assert cmd[0] == "powershell"
        assert "-Wait -Tail 50" in cmd[-1]


class TestTailFollower:
    def test_missing_utility(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(launcher_module, "is_command_installed", lambda name: False)

        with pytest.raises(FollowUnavailableError, match="not installed"):
            TailFollower().follow(tmp_path / "dev.log", 50)

    def test_spawn_failure(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(launcher_module, "is_command_installed", lambda name: True)

        def broken_popen(*args: object, **kwargs: object) -> None:
            raise PermissionError("Permission denied")

        monkeypatch.setattr(launcher_module.subprocess, "Popen", broken_popen)

        with pytest.raises(FollowUnavailableError, match="Permission denied"):
            TailFollower().follow(tmp_path / "dev.log", 50)

    def test_interrupt_terminates_follower(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        proc = Mock()
        proc.wait.side_effect = [KeyboardInterrupt(), 0]
        proc.poll.return_value = None
        monkeypatch.setattr(launcher_module, "is_command_installed", lambda name: True)
        monkeypatch.setattr(launcher_module.subprocess, "Popen", lambda cmd: proc)

        TailFollower().follow(tmp_path / "dev.log", 50)

        proc.terminate.assert_called_once()
        proc.kill.assert_not_called()

    def test_interrupt_kills_stubborn_follower(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        proc = Mock()
        proc.wait.side_effect = [
            KeyboardInterrupt(),
            subprocess.TimeoutExpired("tail", 2.0),
            -9,
        ]
        proc.poll.return_value = None
        monkeypatch.setattr(launcher_module, "is_command_installed", lambda name: True)
        monkeypatch.setattr(launcher_module.subprocess, "Popen", lambda cmd: proc)

        TailFollower().follow(tmp_path / "dev.log", 50)

        proc.terminate.assert_called_once()
        proc.kill.assert_called_once()

    @posix_only
    def test_follows_real_file_until_interrupted(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "dev.log"
        log_file.write_text("line one\n")
        started: list[subprocess.Popen[bytes]] = []
        real_popen = subprocess.Popen

        def recording_popen(cmd: list[str]) -> subprocess.Popen[bytes]:
            proc = real_popen(cmd, stdout=subprocess.DEVNULL)
            started.append(proc)
            real_wait = proc.wait

            def interrupted_wait(timeout: float | None = None) -> int:
                if timeout is None:
                    raise KeyboardInterrupt
                return real_wait(timeout=timeout)

            proc.wait = interrupted_wait  # type: ignore[method-assign]
            return proc

        monkeypatch.setattr(launcher_module.subprocess, "Popen", recording_popen)

        TailFollower().follow(log_file, 10)

        assert len(started) == 1
        assert started[0].returncode is not None
