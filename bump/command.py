import subprocess
from typing import Sequence, Union

from bump.errors import MissingCommand, SystemUnitFailure

MOUNTPOINT = "/mnt"
# Shell exit status for a command that could not be started.
NOT_EXECUTED = 127

Command = Union[str, Sequence[str]]


class CommandNotSuccessful(SystemUnitFailure):
    def __init__(self, cmd: Command, returncode: int):
        self.cmd = cmd
        self.returncode = returncode
        super().__init__(f"{_display(cmd)} exited with code {returncode}")


def _display(cmd: Command) -> str:
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run(cmd: Command, force: bool = False) -> int:
    """
    Execute cmd. A string goes through the shell, a sequence does not.
    If force is True, it won't raise an exception if cmd exit code isn't
    equal to 0, and a command that cannot be started returns 127.
    """
    try:
        rv = subprocess.call(cmd, shell=isinstance(cmd, str))
    except OSError as e:
        if force:
            return NOT_EXECUTED
        raise MissingCommand(f"cannot execute {_display(cmd)}: {e}") from e
    if not force and rv != 0:
        raise CommandNotSuccessful(cmd, rv)
    return rv


def capture(cmd: Command) -> str:
    try:
        proc = subprocess.run(
            cmd, shell=isinstance(cmd, str), capture_output=True, text=True
        )
    except OSError as e:
        raise MissingCommand(f"cannot execute {_display(cmd)}: {e}") from e
    if proc.returncode != 0:
        raise CommandNotSuccessful(cmd, proc.returncode)
    return proc.stdout


def arch_chroot_run(
    cmd: Sequence[str], mountpoint: str = MOUNTPOINT, force: bool = False
) -> int:
    return run(["arch-chroot", str(mountpoint), *cmd], force=force)
