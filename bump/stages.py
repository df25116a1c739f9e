import argparse
import os
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from bump import checks, command, services, target, teardown
from bump.config import (
    Config,
    Identity,
    load_config,
    load_identity,
    log_config,
)
from bump.context import Bump

CONFIG = "config.toml"
# Mounted by the partitioning stage, relative to the target mount point.
TARGET_MOUNTS = ("", "efi", "home")


def phase(bump: Bump, number, title: str) -> None:
    print()
    bump.print_rule()
    bump.log_message(f"Phase {number}: {title}")
    print(f"  Phase {number}: {title}")
    bump.print_rule()
    print()


def _setup(
    bump: Bump, location: str, environ: Optional[Mapping[str, str]]
) -> Tuple[Config, Identity]:
    # Environment first: nothing is registered until it is complete.
    identity = load_identity(bump, environ)
    cfg = load_config(location)
    log_config(bump, cfg, identity)
    bump.register(
        "cleanup_mounts",
        teardown.cleanup_mounts(bump, cfg.vg_name, str(cfg.mountpoint)),
    )
    return cfg, identity


def preflight(
    bump: Bump,
    location: str = CONFIG,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    cfg, _ = _setup(bump, location, environ)
    phase(bump, 1, "Validate environment")
    checks.require_root(bump)
    checks.check_live_usb(bump)
    checks.check_network(bump, cfg.network_host)
    for cmd in cfg.required_commands:
        checks.check_dependency(bump, cmd)
    checks.check_exists(bump, str(cfg.services_file))
    checks.check_exists(bump, str(cfg.user_services_file))
    checks.check_disk_size(bump, cfg.disk, cfg.min_disk_gib)
    bump.log_message("Environment verified")
    return cfg


def configure(
    bump: Bump,
    location: str = CONFIG,
    environ: Optional[Mapping[str, str]] = None,
) -> List[str]:
    cfg, identity = _setup(bump, location, environ)
    mnt = str(cfg.mountpoint)

    phase(bump, 4, "Validate stage 1")
    checks.require_root(bump)
    checks.check_live_usb(bump)
    checks.check_dependency(bump, "arch-chroot")
    for sub in TARGET_MOUNTS:
        checks.check_mountpoint(bump, os.path.join(mnt, sub) if sub else mnt)
    checks.check_exists(bump, str(cfg.services_file))
    bump.log_message("Stage 1 state verified")

    phase(bump, 6, "System configuration")
    for path in target.write_files(mnt, cfg, identity.hostname):
        bump.log_setting("Wrote", path)
    command.arch_chroot_run(
        [
            "ln",
            "-sf",
            f"/usr/share/zoneinfo/{cfg.time_zone}",
            "/etc/localtime",
        ],
        mountpoint=mnt,
    )
    command.arch_chroot_run(["hwclock", "--systohc"], mountpoint=mnt)
    locale_gen = os.path.join(mnt, "etc", "locale.gen")
    checks.check_exists(bump, locale_gen)
    if target.uncomment_lines(locale_gen, cfg.locales) == 0:
        bump.warning(f"no locales uncommented in {locale_gen}")
    command.arch_chroot_run(["locale-gen"], mountpoint=mnt)

    phase(bump, 7, "Enable system services")
    return services.enable_services(
        bump, services.read_list(str(cfg.services_file)), root=mnt
    )


def enable_user_services(bump: Bump, location: str = CONFIG) -> List[str]:
    cfg = load_config(location)
    phase(bump, 9, "Validate environment")
    checks.require_not_root(bump)
    checks.check_network(bump, cfg.network_host)
    checks.check_dependency(bump, "sudo")
    checks.check_exists(bump, str(cfg.services_file))
    checks.check_exists(bump, str(cfg.user_services_file))

    phase(bump, 12, "Enable AUR-dependent services")
    failed = services.enable_services(
        bump, services.deferred_units(str(cfg.services_file)), sudo=True
    )
    phase(bump, 13, "Enable user services")
    failed += services.enable_services(
        bump, services.read_list(str(cfg.user_services_file)), user=True
    )
    return failed


STAGES: Dict[str, Callable] = {
    "preflight": preflight,
    "configure": configure,
    "services": enable_user_services,
}


def run_stage(bump: Bump, stage: str, location: str = CONFIG):
    bump.apply_env()
    return STAGES[stage](bump, location)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="bump", description="Supervised Arch Linux install stages"
    )
    parser.add_argument("stage", choices=sorted(STAGES))
    parser.add_argument("--config", default=CONFIG)
    args = parser.parse_args(argv)

    bump = Bump()
    bump.set_stamp()
    bump.install_signal_handlers()
    bump.supervise(run_stage, bump, args.stage, args.config)
