import os
import shutil
import signal
import subprocess

from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from .errors import CommandExecutionError, CommandTimeoutError
from .system_info import OsType, ShellType, SystemInfo

POWERSHELL_UTF8_PRELUDE = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8"
CMD_UTF8_PRELUDE = "chcp 65001 >nul"

UNIX_SHELLS = {
    ShellType.BASH: ("bash", "/bin/bash"),
    ShellType.ZSH: ("zsh", "/bin/zsh"),
    ShellType.FISH: ("fish", "/usr/bin/fish"),
}
FALLBACK_UNIX_SHELL = "/bin/sh"

# Reported when the process was killed by a signal and has no exit code.
EXIT_CODE_UNAVAILABLE = -1


@dataclass(frozen=True)
class CommandOutput:
    success: bool
    exit_code: int
    stdout: bytes
    stderr: bytes

    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    def display(self) -> str:
        parts = []
        if self.stdout:
            parts.append(f"=== stdout ===\n{self.stdout_text()}")
        if self.stderr:
            parts.append(f"=== stderr ===\n{self.stderr_text()}")
        if not self.success:
            parts.append(f"=== status ===\nExit code: {self.exit_code}")
        return "\n".join(parts)


def _unix_shell_binary(shell: ShellType) -> str:
    if shell not in UNIX_SHELLS:
        return FALLBACK_UNIX_SHELL
    name, default_path = UNIX_SHELLS[shell]
    return shutil.which(name) or default_path


def build_invocation(command: str, system_info: SystemInfo) -> List[str]:
    """Maps the detected OS and shell to the argv that runs `command`."""
    if system_info.os == OsType.WINDOWS:
        if system_info.shell == ShellType.POWERSHELL:
            return ["powershell", "-NoProfile", "-Command", f"{POWERSHELL_UTF8_PRELUDE}; {command}"]
        return ["cmd", "/C", f"{CMD_UTF8_PRELUDE} && {command}"]

    return [_unix_shell_binary(system_info.shell), "-c", command]


def _kill(process: subprocess.Popen):
    if os.name == "posix":
        # The shell may have spawned children holding the pipes open.
        try:
            os.killpg(process.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    process.kill()


def execute(command: str, system_info: SystemInfo, timeout: Optional[float] = None) -> CommandOutput:
    """
    Runs a shell command and captures its whole output.

    Args:
        command: The command line, passed verbatim to the shell.
        system_info: Decides which shell runs the command.
        timeout: Seconds to wait before the process is killed. None waits forever.

    Raises:
        CommandTimeoutError: The timeout elapsed; carries the stdout captured so far.
        CommandExecutionError: The shell could not be started or waited on.
    """
    argv = build_invocation(command, system_info)
    logger.info("Executing command: {}", command)

    try:
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        raise CommandExecutionError(f"Failed to spawn command: {e}") from e

    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill(process)
        stdout, _ = process.communicate()
        logger.warning("Command timed out after {}s: {}", timeout, command)
        raise CommandTimeoutError(timeout, stdout or b"") from None
    except OSError as e:
        _kill(process)
        process.wait()
        raise CommandExecutionError(f"Failed to wait for command: {e}") from e

    exit_code = process.returncode
    if exit_code is None or exit_code < 0:
        exit_code = EXIT_CODE_UNAVAILABLE

    logger.info("Command finished with exit code {}", exit_code)
    return CommandOutput(
        success=exit_code == 0,
        exit_code=exit_code,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )
