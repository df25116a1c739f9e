import datetime
import os
import re
import time
from typing import Dict, List, Optional

from bump import checks
from bump.codes import ExitCategory
from bump.context import Bump

PROC = "/proc"


def _now() -> str:
    return datetime.datetime.now().astimezone().isoformat()


def _append(path: str, line: str) -> None:
    with open(path, "a") as f:
        f.write(line + "\n")


def is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def find_pids(name: str) -> List[int]:
    """Pids whose command name matches `name`, like pgrep."""
    pattern = re.compile(name)
    pids = []
    for entry in os.listdir(PROC):
        if not entry.isdigit():
            continue
        try:
            with open(os.path.join(PROC, entry, "comm")) as f:
                comm = f.read().strip()
        except OSError:
            continue
        if pattern.search(comm):
            pids.append(int(entry))
    return pids


def slow(bump: Bump, name: str, wait: Optional[float] = None) -> None:
    bump.log_setting("program name to wait for", name)
    wait = bump.wait if wait is None else wait
    for pid in find_pids(name):
        while is_running(pid):
            bump.log_message(f"{name} {pid} is still running")
            time.sleep(wait)


def read_loadavg() -> str:
    with open(os.path.join(PROC, "loadavg")) as f:
        return " ".join(f.read().split()[:3])


def read_status(pid: int) -> Dict[str, str]:
    status = {}
    with open(os.path.join(PROC, str(pid), "status")) as f:
        for line in f:
            key, _, value = line.partition(":")
            status[key] = value.split()[0] if value.split() else ""
    return status


def read_meminfo() -> Dict[str, int]:
    meminfo = {}
    with open(os.path.join(PROC, "meminfo")) as f:
        for line in f:
            key, _, value = line.partition(":")
            meminfo[key] = int(value.split()[0])
    return meminfo


def load_report(bump: Bump, label: str, path: str) -> int:
    try:
        load = read_loadavg()
    except OSError:
        bump.warning(f"{PROC}/loadavg not available")
        return 1
    try:
        _append(path, f"{label} {_now()} {load}")
    except OSError:
        return bump.report(ExitCategory.FILING_ERROR, "saving system load")
    return 0


def memory_report(bump: Bump, label: str, pid: int, path: str) -> int:
    try:
        status = read_status(pid)
    except OSError:
        # process not found
        return 1
    hwm, rss = status.get("VmHWM"), status.get("VmRSS")
    if hwm is None:
        return bump.report(ExitCategory.CORRUPT_DATA, "finding VmHWM")
    if rss is None:
        return bump.report(ExitCategory.CORRUPT_DATA, "finding VmRSS")
    try:
        _append(path, f"{label} {pid} {_now()} {hwm} {rss}")
    except OSError:
        return bump.report(ExitCategory.FILING_ERROR, "saving memory usage")
    return 0


def free_memory_report(bump: Bump, label: str, path: str) -> int:
    try:
        meminfo = read_meminfo()
    except OSError:
        bump.warning(f"{PROC}/meminfo not available")
        return 1
    if "MemAvailable" in meminfo:
        available = meminfo["MemAvailable"]
    else:
        available = meminfo.get("MemFree", 0) + meminfo.get("Cached", 0)
    swap_free = meminfo.get("SwapFree", 0)
    try:
        line = f"{label} {_now()} {available // 1024} {swap_free // 1024}"
        _append(path, line)
    except OSError:
        return bump.report(ExitCategory.FILING_ERROR, "saving free memory")
    return 0


def _workers(path: Optional[str]) -> List[int]:
    if not path or not os.path.isfile(path):
        return []
    pids = []
    with open(path) as f:
        for line in f:
            first = line.split()[0] if line.split() else ""
            if first.isdigit():
                pids.append(int(first))
    return pids


def poll_reports(
    bump: Bump,
    pid_monitor: int,
    pid_label: str,
    wait: float,
    job: str,
    logs: str,
    workers: Optional[str] = None,
) -> None:
    """
    Sample load, worker memory and free memory every `wait` seconds while
    pid_monitor is alive. Files are named <stamp>.<job>.<label>.<kind>
    under logs.
    """
    checks.not_empty(bump, "PID to monitor in loop condition", pid_monitor)
    checks.not_empty(
        bump, "PID to use for labelling resource reports", pid_label
    )
    checks.not_empty(bump, "time between reports", wait)
    checks.not_empty(bump, "job name", job)
    checks.not_empty(bump, "logs directory", logs)
    prefix = os.path.join(logs, f"{bump.stamp}.{job}")
    while is_running(pid_monitor):
        time.sleep(wait)
        load_report(bump, f"{job} run", f"{prefix}.{pid_label}.load")
        for pid in _workers(workers):
            if is_running(pid):
                memory_path = f"{prefix}.{pid}.memory"
                memory_report(bump, f"{job} run", pid, memory_path)
        free_memory_report(bump, f"{job} run", f"{prefix}.{pid_label}.free")
