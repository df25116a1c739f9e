import hashlib
import os
import shutil
import stat
from typing import Mapping, Optional

from bump import command
from bump.context import Bump
from bump.errors import (
    BadConfiguration,
    BumpError,
    CorruptData,
    MissingCommand,
    MissingDisk,
    MissingFile,
    MissingFolder,
    MissingInput,
    MissingMount,
    NetworkError,
    SecurityFailure,
    Unsafe,
)

GIB = 1024 ** 3


def _fail(bump: Bump, error: BumpError, operation: str, fatal: bool) -> int:
    if fatal:
        raise error
    bump.log_message(error.message)
    return bump.report(error.category, operation)


def not_empty(bump: Bump, description: str, value, fatal: bool = True) -> int:
    if value is None or value == "":
        return _fail(
            bump,
            MissingInput(f"cannot run without {description}"),
            f"checking {description}",
            fatal,
        )
    return 0


def require_env(
    bump: Bump, name: str, environ: Optional[Mapping[str, str]] = None
) -> str:
    environ = os.environ if environ is None else environ
    value = environ.get(name, "")
    not_empty(bump, f"{name} environment variable", value)
    return value


def check_exists(bump: Bump, path: str, fatal: bool = True) -> int:
    bump.log_setting("file or directory name that must exist", path)
    if not os.path.exists(path):
        error = MissingFile(f"cannot find {path}")
        return _fail(bump, error, f"checking {path}", fatal)
    return 0


def check_folder(bump: Bump, path: str, fatal: bool = True) -> int:
    bump.log_setting("directory that must exist", path)
    if not os.path.isdir(path):
        error = MissingFolder(f"cannot find directory {path}")
        return _fail(bump, error, f"checking {path}", fatal)
    return 0


def check_device(bump: Bump, path: str, fatal: bool = True) -> int:
    bump.log_setting("block device that must exist", path)
    try:
        is_block = stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        is_block = False
    if not is_block:
        error = MissingDisk(f"{path} is not a block device")
        return _fail(bump, error, f"checking {path}", fatal)
    return 0


def check_mountpoint(bump: Bump, path: str, fatal: bool = True) -> int:
    bump.log_setting("mount point that must be mounted", path)
    if not os.path.ismount(path):
        error = MissingMount(f"{path} is not mounted")
        return _fail(bump, error, f"checking {path}", fatal)
    return 0


def check_dependency(bump: Bump, cmd: str, fatal: bool = True) -> int:
    bump.log_setting("command to check for", cmd)
    if shutil.which(cmd) is None:
        error = MissingCommand(f"cannot find {cmd} in PATH")
        return _fail(bump, error, f"looking for {cmd}", fatal)
    return 0


def check_contains(
    bump: Bump, path: str, text: str, fatal: bool = True
) -> int:
    bump.log_setting("file name to check", path)
    bump.log_setting("string to check for", text)
    try:
        with open(path, errors="replace") as f:
            contents = f.read()
    except FileNotFoundError:
        error = MissingFile(f"cannot find {path}")
        return _fail(bump, error, f"checking {path}", fatal)
    if text not in contents:
        return _fail(
            bump,
            BadConfiguration(f"{path} does not contain {text}"),
            f"checking {path}",
            fatal,
        )
    return 0


def md5sum(path: str) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            digest.update(chunk)
    return digest.hexdigest()


def check_md5(bump: Bump, expected: str, path: str, fatal: bool = True) -> int:
    bump.log_setting("required MD5", expected)
    bump.log_setting("file to check", path)
    if check_exists(bump, path, fatal=fatal):
        return MissingFile.category
    actual = md5sum(path)
    if actual.lower() != expected.lower():
        return _fail(
            bump,
            CorruptData(f"{path} has md5 {actual}, expected {expected}"),
            f"checking {path}",
            fatal,
        )
    bump.log_message(f"{path} has correct md5")
    return 0


def require_root(
    bump: Bump, euid: Optional[int] = None, fatal: bool = True
) -> int:
    euid = os.geteuid() if euid is None else euid
    if euid != 0:
        error = SecurityFailure("Must run as root")
        return _fail(bump, error, "checking user", fatal)
    return 0


def require_not_root(
    bump: Bump, euid: Optional[int] = None, fatal: bool = True
) -> int:
    euid = os.geteuid() if euid is None else euid
    if euid == 0:
        error = Unsafe("Run as the primary user, not root")
        return _fail(bump, error, "checking user", fatal)
    return 0


def check_live_usb(
    bump: Bump, marker: str = "/run/archiso", fatal: bool = True
) -> int:
    if not os.path.isdir(marker):
        return _fail(
            bump,
            Unsafe(f"Not running from a live USB (no {marker})"),
            "checking live environment",
            fatal,
        )
    return 0


def check_network(
    bump: Bump, host: str = "archlinux.org", fatal: bool = True
) -> int:
    bump.log_message("Checking network connectivity")
    rc = command.run(["ping", "-c", "1", "-W", "5", host], force=True)
    if rc != 0:
        return _fail(
            bump,
            NetworkError(f"No network connection to {host}"),
            f"pinging {host}",
            fatal,
        )
    return 0


def disk_size(device: str) -> int:
    return int(command.capture(["blockdev", "--getsize64", device]).strip())


def check_disk_size(
    bump: Bump, device: str, min_gib: int, fatal: bool = True
) -> int:
    if check_device(bump, device, fatal=fatal):
        return MissingDisk.category
    gib = disk_size(device) // GIB
    bump.log_setting("Disk size", f"{gib} GiB")
    if gib < min_gib:
        return _fail(
            bump,
            Unsafe(f"Disk is {gib} GiB, need at least {min_gib} GiB"),
            f"checking size of {device}",
            fatal,
        )
    return 0
