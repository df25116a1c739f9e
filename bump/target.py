import os
import re
from typing import Iterable

import jinja2

from bump.config import Config
from bump.errors import FilingError


def write_file(path: str, contents: str):
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            f.write(contents)
    except OSError as e:
        raise FilingError(f"cannot write {path}: {e}") from e


def template_environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.PackageLoader("bump", "files"),
        autoescape=jinja2.select_autoescape(),
        keep_trailing_newline=True,
    )


def write_files(base_dir: str, cfg: Config, hostname: str) -> list:
    env = template_environment()
    written = []
    for t in env.list_templates():
        path = os.path.join(str(base_dir), t)
        contents = env.get_template(t).render(cfg=cfg, hostname=hostname)
        write_file(path, contents)
        written.append(path)
    return written


def uncomment_lines(path: str, entries: Iterable[str]) -> int:
    """
    Uncomment lines starting with `#<entry>`, like
    sed -i 's/^#<entry>/<entry>/'. Returns the number of lines changed.
    """
    with open(path) as f:
        text = f.read()
    changed = 0
    for entry in entries:
        text, n = re.subn(
            rf"^#\s*({re.escape(entry)})", r"\1", text, flags=re.MULTILINE
        )
        changed += n
    write_file(path, text)
    return changed
