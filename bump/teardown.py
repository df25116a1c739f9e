import os
from typing import List

from bump import command
from bump.codes import ExitCategory
from bump.context import Bump, CleanupAction

SWAPS = "/proc/swaps"


def _mapper_open(name: str) -> bool:
    return os.path.exists(f"/dev/mapper/{name}")


def _vg_active(vg_name: str) -> bool:
    return os.path.isdir(f"/dev/{vg_name}")


def _swap_active(device: str) -> bool:
    try:
        with open(SWAPS) as f:
            lines = f.read().splitlines()[1:]
    except OSError:
        return False
    real = os.path.realpath(device)
    return any(
        line.split()[0] in (device, real) for line in lines if line.strip()
    )


def _step(bump: Bump, cmd: List[str]) -> None:
    # One step failing to start must not keep the later ones from running.
    try:
        command.run(cmd, force=True)
    except OSError as e:
        bump.warning(f"cannot execute {' '.join(cmd)}: {e}")


def cleanup_mounts(
    bump: Bump,
    vg_name: str,
    mountpoint: str = command.MOUNTPOINT,
    swap: str = "swap",
) -> CleanupAction:
    """
    Build the teardown for a LUKS container holding an LVM volume group
    that is mounted under mountpoint. Each step only runs when its
    resource is present, so the action is safe before anything was set up.
    """
    swap_device = f"/dev/{vg_name}/{swap}"

    def action(category: ExitCategory) -> None:
        if category == ExitCategory.SUCCESS:
            return
        bump.log_message("Cleaning up mounts and LUKS...")
        if _swap_active(swap_device):
            _step(bump, ["swapoff", swap_device])
        if os.path.ismount(mountpoint):
            _step(bump, ["umount", "-R", str(mountpoint)])
        if _vg_active(vg_name):
            _step(bump, ["vgchange", "-an", vg_name])
        if _mapper_open(vg_name):
            _step(bump, ["cryptsetup", "close", vg_name])

    return action
