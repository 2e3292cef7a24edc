import os
import socket
import sys

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional


class OsType(Enum):
    WINDOWS = "Windows"
    LINUX = "Linux"
    MACOS = "macOS"


class ShellType(Enum):
    CMD = "cmd.exe"
    POWERSHELL = "PowerShell"
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SystemInfo:
    """The environment the assistant runs in, detected once per invocation."""

    os: OsType
    shell: ShellType
    current_dir: Path
    username: Optional[str] = None
    hostname: Optional[str] = None

    def display(self) -> str:
        return (
            f"OS: {self.os.value}\n"
            f"Shell: {self.shell.value}\n"
            f"Current Dir: {self.current_dir}\n"
            f"Username: {self.username or '(unknown)'}\n"
            f"Hostname: {self.hostname or '(unknown)'}"
        )


def detect_os(platform: Optional[str] = None) -> OsType:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return OsType.WINDOWS
    if platform == "darwin":
        return OsType.MACOS
    # Everything else is treated as a Linux-like system.
    return OsType.LINUX


def detect_shell(os_type: OsType, environ: Optional[Mapping[str, str]] = None) -> ShellType:
    environ = os.environ if environ is None else environ

    if os_type == OsType.WINDOWS:
        if "cmd.exe" in environ.get("COMSPEC", "").lower():
            return ShellType.CMD
        if "PSModulePath" in environ:
            return ShellType.POWERSHELL
        return ShellType.CMD

    shell = environ.get("SHELL", "").lower()
    for name, shell_type in (
        ("bash", ShellType.BASH),
        ("zsh", ShellType.ZSH),
        ("fish", ShellType.FISH),
    ):
        if name in shell:
            return shell_type

    return ShellType.UNKNOWN


def _current_dir() -> Path:
    try:
        return Path.cwd()
    except OSError:
        return Path(".")


def get_system_info(environ: Optional[Mapping[str, str]] = None) -> SystemInfo:
    environ = os.environ if environ is None else environ
    os_type = detect_os()

    hostname = environ.get("COMPUTERNAME") or environ.get("HOSTNAME")
    if not hostname:
        try:
            hostname = socket.gethostname() or None
        except OSError:
            hostname = None

    return SystemInfo(
        os=os_type,
        shell=detect_shell(os_type, environ),
        current_dir=_current_dir(),
        username=environ.get("USERNAME") or environ.get("USER"),
        hostname=hostname,
    )
