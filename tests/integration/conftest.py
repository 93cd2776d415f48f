import stat
from collections.abc import Callable
from pathlib import Path

import pytest

ScriptFactory = Callable[[str, str], Path]


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def create_shell_script(tmp_path: Path) -> ScriptFactory:
    """Return a function that writes an executable /bin/sh script.

    The returned callable takes the script name and its body (without the
    shebang line) and returns the path of the script.
    """
    scripts_dir = tmp_path / "scripts"
    scripts_dir.mkdir()

    def _create(name: str, body: str) -> Path:
        path = scripts_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _create
