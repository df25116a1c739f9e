from types import SimpleNamespace

import pytest

from bump import target
from bump.codes import ExitCategory
from bump.errors import FilingError

LOCALE_GEN = "#en_AU.UTF-8 UTF-8\n#en_GB.UTF-8 UTF-8\n#en_US.UTF-8 UTF-8\n"


def test_write_files_renders_templates(tmp_path):
    cfg = SimpleNamespace(
        lc_conf_vars={"LANG": "en_AU.UTF-8", "LC_TIME": "en_GB.UTF-8"}
    )
    written = target.write_files(str(tmp_path), cfg, "box")
    assert sorted(written) == sorted(
        str(tmp_path / "etc" / name)
        for name in ("hostname", "hosts", "locale.conf")
    )
    etc = tmp_path / "etc"
    assert (etc / "hostname").read_text() == "box\n"
    assert "box.localdomain" in (etc / "hosts").read_text()
    assert (etc / "locale.conf").read_text() == (
        "LANG=en_AU.UTF-8\nLC_TIME=en_GB.UTF-8\n"
    )


def test_uncomment_lines(tmp_path):
    locale_gen = tmp_path / "locale.gen"
    locale_gen.write_text(LOCALE_GEN)
    changed = target.uncomment_lines(
        str(locale_gen), ["en_AU.UTF-8 UTF-8", "en_US.UTF-8 UTF-8"]
    )
    assert changed == 2
    assert locale_gen.read_text() == (
        "en_AU.UTF-8 UTF-8\n#en_GB.UTF-8 UTF-8\nen_US.UTF-8 UTF-8\n"
    )


def test_write_file_failure_is_filing_error(tmp_path):
    # A regular file where a directory is needed.
    (tmp_path / "etc").write_text("")
    with pytest.raises(FilingError, match="cannot write") as exc:
        target.write_file(str(tmp_path / "etc" / "hostname"), "box\n")
    assert exc.value.category == ExitCategory.FILING_ERROR
