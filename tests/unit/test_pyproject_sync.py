"""Unit tests for requirements.txt / pyproject.toml dependency synchronization."""

import re
import tomllib
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[2]
_REQUIREMENTS_TXT = _REPO_ROOT / "requirements.txt"
_PYPROJECT_TOML = _REPO_ROOT / "pyproject.toml"


def _normalize(name: str) -> str:
    """PEP 503 name normalization."""
    return re.sub(r"[-_.]+", "-", name).lower()


def _requirement_name(spec: str) -> str:
    return _normalize(re.split(r"[><=!~\[;\s]", spec.strip(), maxsplit=1)[0])


def _parse_requirements(path: Path) -> set[str]:
    names: set[str] = set()
    for line in path.read_text().splitlines():
        line = line.split("#", 1)[0].strip()
        if line and not line.startswith("-"):
            names.add(_requirement_name(line))
    return names


def _parse_pyproject_dependencies(path: Path) -> set[str]:
    project = tomllib.loads(path.read_text())["project"]
    return {_requirement_name(dep) for dep in project.get("dependencies", [])}


class TestPyprojectSync:
    """Dependencies declared in requirements.txt and pyproject.toml must agree."""

    def test_files_exist(self) -> None:
        assert _REQUIREMENTS_TXT.exists(), f"Missing {_REQUIREMENTS_TXT}"
        assert _PYPROJECT_TOML.exists(), f"Missing {_PYPROJECT_TOML}"

    def test_same_runtime_dependencies(self) -> None:
        req_names = _parse_requirements(_REQUIREMENTS_TXT)
        pyproject_names = _parse_pyproject_dependencies(_PYPROJECT_TOML)
        assert req_names
        assert req_names == pyproject_names

    def test_test_extra_declares_async_plugin(self) -> None:
        project = tomllib.loads(_PYPROJECT_TOML.read_text())["project"]
        test_extra = {_requirement_name(d) for d in project["optional-dependencies"]["test"]}
        assert {"pytest", "pytest-asyncio"} <= test_extra
