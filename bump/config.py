import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import marshmallow_dataclass
import toml
from marshmallow import ValidationError, fields

from bump import checks
from bump.context import Bump
from bump.errors import BadConfiguration, MissingFile

HOST_VARIABLE = "INSTALL_HOST"
USER_VARIABLE = "INSTALL_USER"


class PathField(fields.Field):
    def _serialize(self, value, *args, **kwargs):
        if value is None:
            return ""
        return str(value)

    def _deserialize(self, value: Any, *args, **kwargs):
        if not value:
            raise ValidationError("Must'nt be empty")
        return pathlib.Path(value)


@dataclass
class Config:
    disk: str
    efi_partition: str
    luks_partition: str
    vg_name: str
    time_zone: str
    locales: List[str]
    lc_conf_vars: Dict[str, str]
    mountpoint: pathlib.Path = field(
        default=pathlib.Path("/mnt"),
        metadata={"marshmallow_field": PathField()},
    )
    min_disk_gib: int = 950
    required_commands: List[str] = field(default_factory=list)
    services_file: pathlib.Path = field(
        default=pathlib.Path("services.txt"),
        metadata={"marshmallow_field": PathField()},
    )
    user_services_file: pathlib.Path = field(
        default=pathlib.Path("user-services.txt"),
        metadata={"marshmallow_field": PathField()},
    )
    network_host: str = "archlinux.org"


@dataclass
class Identity:
    hostname: str
    username: str


def parse_config(data: Mapping[str, Any]) -> Config:
    try:
        return marshmallow_dataclass.class_schema(Config)().load(data)
    except ValidationError as e:
        raise BadConfiguration(f"invalid configuration: {e.messages}") from e


def load_config(location: str) -> Config:
    try:
        data = toml.load(location)
    except FileNotFoundError as e:
        raise MissingFile(f"cannot find {location}") from e
    except toml.TomlDecodeError as e:
        raise BadConfiguration(f"cannot parse {location}: {e}") from e
    return parse_config(data)


def load_identity(
    bump: Bump, environ: Optional[Mapping[str, str]] = None
) -> Identity:
    return Identity(
        hostname=checks.require_env(bump, HOST_VARIABLE, environ),
        username=checks.require_env(bump, USER_VARIABLE, environ),
    )


def log_config(bump: Bump, cfg: Config, identity: Identity) -> None:
    bump.log_setting("Hostname", identity.hostname)
    bump.log_setting("Username", identity.username)
    bump.log_setting("Disk", cfg.disk)
    bump.log_setting("EFI partition", cfg.efi_partition)
    bump.log_setting("LUKS partition", cfg.luks_partition)
    bump.log_setting("LVM volume group", cfg.vg_name)
    bump.log_setting("Mount point", cfg.mountpoint)
    bump.log_setting("Time zone", cfg.time_zone)
