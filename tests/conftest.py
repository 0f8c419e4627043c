"""
Shared test fixtures and helpers for the loadpath test suite.
"""

import sys
import uuid
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import pytest


# ============================================================================
# Filesystem Helpers
# ============================================================================


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create ``files`` (slash-delimited name -> content) under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def make_archive(
    path: Path,
    entries: Dict[str, str],
    class_path: Optional[str] = None,
    manifest: Optional[str] = None,
    compression: int = zipfile.ZIP_STORED,
) -> Path:
    """
    Build a ZIP archive.

    ``class_path`` writes a manifest with that ``Class-Path`` value;
    ``manifest`` writes raw manifest text instead.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if manifest is None and class_path is not None:
        manifest = f"Manifest-Version: 1.0\r\nClass-Path: {class_path}\r\n\r\n"

    with zipfile.ZipFile(path, "w", compression=compression) as archive:
        if manifest is not None:
            archive.writestr("META-INF/", "")
            archive.writestr("META-INF/MANIFEST.MF", manifest)
        for name, content in entries.items():
            archive.writestr(name, content)

    return path


# ============================================================================
# Importable Application Fixture
# ============================================================================


@dataclass
class AppTree:
    root: Path
    package: str


APP_FILES = {
    "__init__.py": "",
    "handlers/__init__.py": "",
    "handlers/users.py": (
        "from loadpath import tag\n"
        "\n"
        "__tags__ = ('component',)\n"
        "\n"
        "\n"
        "@tag('component', 'http')\n"
        "class UserHandler:\n"
        "    class Builder:\n"
        "        pass\n"
    ),
    "handlers/plain.py": "VALUE = 1\n",
    "services/__init__.py": "",
    "services/billing.py": "__tags__ = ('component', 'service')\n",
    "broken.py": "raise RuntimeError('boom')\n",
    "settings.properties": "debug=true\n",
}


@pytest.fixture
def app_tree(tmp_path):
    """
    An importable package under ``tmp_path / "src"`` with a unique name.

    Imported modules are dropped from ``sys.modules`` afterwards.
    """
    package = f"lp_app_{uuid.uuid4().hex[:8]}"
    root = tmp_path / "src"
    write_tree(root, {f"{package}/{name}": content for name, content in APP_FILES.items()})

    yield AppTree(root=root, package=package)

    for name in list(sys.modules):
        if name == package or name.startswith(package + "."):
            del sys.modules[name]
