import datetime
import re
import socket
from dataclasses import dataclass
from typing import Optional

from bump.errors import MissingInput

HOSTNAME_FILE = "/proc/sys/kernel/hostname"


@dataclass(frozen=True)
class RunStamp:
    created: datetime.datetime
    host: str

    def __str__(self) -> str:
        return f"{self.created:%Y%m%dT%H%M%S}-{self.host}"


def read_hostname() -> str:
    try:
        with open(HOSTNAME_FILE) as f:
            return f.read().strip()
    except OSError:
        return socket.gethostname()


def make_stamp(
    now: Optional[datetime.datetime] = None, host: Optional[str] = None
) -> RunStamp:
    return RunStamp(
        created=now or datetime.datetime.now(),
        host=host or read_hostname(),
    )


def current_month(now: Optional[datetime.datetime] = None) -> str:
    return f"{now or datetime.datetime.now():%Y%m}"


def path_as_name(path: str) -> str:
    """
    Turn a path into something usable as a file name:
    /var/lib/some dir -> var-lib-some_dir
    """
    if not path:
        raise MissingInput("cannot run without path to convert to a name")
    name = re.sub(r"^/", "", path)
    name = name.replace("/", "-")
    return re.sub(r"\s", "_", name)
