import signal

import pytest

from bump import stages
from bump.codes import ExitCategory

from test_config import with_mountpoint, write_config

ENV = {"INSTALL_HOST": "box", "INSTALL_USER": "me"}


@pytest.fixture
def no_signals(monkeypatch):
    monkeypatch.setattr(signal, "signal", lambda signum, handler: None)


@pytest.fixture
def passing_checks(monkeypatch):
    for name in (
        "require_root",
        "require_not_root",
        "check_live_usb",
        "check_network",
        "check_dependency",
        "check_disk_size",
        "check_mountpoint",
    ):
        monkeypatch.setattr(stages.checks, name, lambda *args, **kwargs: 0)


@pytest.fixture
def registered(monkeypatch):
    names = []
    monkeypatch.setattr(
        stages.Bump,
        "register",
        lambda self, name, action: names.append(name),
    )
    return names


def test_missing_environment_exits_before_cleanup(
    tmp_path, monkeypatch, no_signals, registered, capsys
):
    monkeypatch.delenv("INSTALL_HOST", raising=False)
    monkeypatch.delenv("INSTALL_USER", raising=False)
    monkeypatch.delenv("WAIT", raising=False)

    with pytest.raises(SystemExit) as exc:
        stages.main(["preflight", "--config", write_config(tmp_path)])

    assert exc.value.code == ExitCategory.MISSING_INPUT
    assert registered == []
    err = capsys.readouterr().err
    assert "cannot run without INSTALL_HOST environment variable" in err


def test_bad_wait_exits_with_bad_configuration(
    tmp_path, monkeypatch, no_signals, registered, capsys
):
    monkeypatch.setenv("WAIT", "soon")

    with pytest.raises(SystemExit) as exc:
        stages.main(["preflight", "--config", write_config(tmp_path)])

    assert exc.value.code == ExitCategory.BAD_CONFIGURATION
    assert registered == []
    assert "WAIT must be a number of seconds" in capsys.readouterr().err


def test_preflight_registers_teardown_and_validates(
    bump, tmp_path, monkeypatch, passing_checks
):
    (tmp_path / "services.txt").write_text("fstrim.timer\n")
    (tmp_path / "user-services.txt").write_text("pipewire.socket\n")
    monkeypatch.chdir(tmp_path)

    cfg = stages.preflight(bump, write_config(tmp_path), environ=ENV)

    assert cfg.vg_name == "internal"
    assert [name for name, _ in bump.cleanup_actions] == ["cleanup_mounts"]


def test_preflight_missing_list_file_exits_with_missing_file(
    bump, tmp_path, monkeypatch, passing_checks
):
    monkeypatch.chdir(tmp_path)
    torn_down = []
    monkeypatch.setattr(
        stages.teardown,
        "cleanup_mounts",
        lambda *args, **kwargs: torn_down.append,
    )

    with pytest.raises(SystemExit) as exc:
        bump.supervise(stages.preflight, bump, write_config(tmp_path), ENV)

    assert exc.value.code == ExitCategory.MISSING_FILE
    assert torn_down == [ExitCategory.MISSING_FILE]


@pytest.fixture
def target_root(tmp_path, monkeypatch):
    mnt = tmp_path / "mnt"
    (mnt / "etc").mkdir(parents=True)
    (mnt / "etc" / "locale.gen").write_text(
        "#en_AU.UTF-8 UTF-8\n#en_US.UTF-8 UTF-8\n"
    )
    (tmp_path / "services.txt").write_text("fstrim.timer\n# zfs.target\n")
    monkeypatch.chdir(tmp_path)
    return mnt


def test_configure_writes_target_files(
    bump, tmp_path, target_root, monkeypatch, passing_checks
):
    chrooted = []
    monkeypatch.setattr(
        stages.command,
        "arch_chroot_run",
        lambda cmd, mountpoint="/mnt", force=False: chrooted.append(cmd) or 0,
    )
    location = write_config(tmp_path, with_mountpoint(target_root))

    failed = stages.configure(bump, location, environ=ENV)

    assert failed == []
    etc = target_root / "etc"
    assert (etc / "hostname").read_text() == "box\n"
    assert (etc / "locale.gen").read_text().startswith("en_AU.UTF-8 UTF-8\n")
    assert ["locale-gen"] in chrooted
    assert ["systemctl", "enable", "fstrim.timer"] in chrooted


def test_configure_unwritable_target_exits_with_filing_error(
    bump, tmp_path, target_root, monkeypatch, passing_checks
):
    torn_down = []
    monkeypatch.setattr(
        stages.teardown,
        "cleanup_mounts",
        lambda *args, **kwargs: torn_down.append,
    )

    def read_only(path, contents):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(stages.target, "write_file", read_only)
    location = write_config(tmp_path, with_mountpoint(target_root))

    with pytest.raises(SystemExit) as exc:
        bump.supervise(stages.configure, bump, location, ENV)

    assert exc.value.code == ExitCategory.FILING_ERROR
    assert torn_down == [ExitCategory.FILING_ERROR]


def test_user_services_stage(bump, tmp_path, monkeypatch, passing_checks):
    (tmp_path / "services.txt").write_text("fstrim.timer\n# zfs.target\n")
    (tmp_path / "user-services.txt").write_text("pipewire.socket\n")
    monkeypatch.chdir(tmp_path)
    commands = []
    monkeypatch.setattr(
        stages.services.command,
        "run",
        lambda cmd, force=False: commands.append(cmd) or 0,
    )

    assert stages.enable_user_services(bump, write_config(tmp_path)) == []
    assert commands == [
        ["sudo", "systemctl", "enable", "zfs.target"],
        ["systemctl", "--user", "enable", "pipewire.socket"],
    ]


def test_phase_banner(harness, capsys):
    stages.phase(harness.bump, 2, "Partition disk")
    out = capsys.readouterr().out
    assert "  Phase 2: Partition disk" in out
    assert harness.bump.rule in out
    assert harness.lines()[-1].endswith("Phase 2: Partition disk")
