import re
from typing import Iterable, List, Optional

from bump import command
from bump.codes import ExitCategory
from bump.context import Bump

# Commented units in services.txt need AUR packages and are enabled later.
DEFERRED_UNIT = re.compile(r"^# (.*\.(?:service|timer|target|socket))$")


def read_list(path: str) -> List[str]:
    with open(path) as f:
        return [
            line.strip()
            for line in f
            if line.strip() and not line.startswith("#")
        ]


def deferred_units(path: str) -> List[str]:
    units = []
    with open(path) as f:
        for line in f:
            match = DEFERRED_UNIT.match(line.rstrip("\n"))
            if match:
                units.append(match.group(1))
    return units


def enable_services(
    bump: Bump,
    units: Iterable[str],
    user: bool = False,
    sudo: bool = False,
    root: Optional[str] = None,
) -> List[str]:
    """
    Enable each unit, best-effort. A unit that fails to enable is reported
    and skipped; the returned list holds those units.
    """
    failed = []
    for unit in units:
        cmd = ["systemctl"]
        if user:
            cmd.append("--user")
        cmd += ["enable", unit]
        if root is not None:
            rc = command.arch_chroot_run(cmd, mountpoint=root, force=True)
        else:
            rc = command.run(["sudo", *cmd] if sudo else cmd, force=True)
        if rc == 0:
            bump.log_message(f"Enabled {unit}")
        else:
            bump.warning(f"{unit} not available")
            bump.report(ExitCategory.SYSTEM_UNIT_FAILURE, f"enabling {unit}")
            failed.append(unit)
    return failed
