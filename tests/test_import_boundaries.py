from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

ROOT = Path(__file__).resolve().parents[1]


def _load_checker_module() -> ModuleType:
    module_path = ROOT / "tools" / "check_imports.py"
    spec = importlib.util.spec_from_file_location("check_imports_tool", module_path)
    assert spec is not None
    loader = spec.loader
    assert loader is not None
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_check_file_allows_core_internal_import(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "scene_contract"
    core_file = source_root / "core" / "splitter.py"
    _write(core_file, "from scene_contract.core import settings\nfrom . import markers\n")
    violations = checker.check_file(core_file, source_root)
    assert violations == []


def test_check_file_rejects_core_importing_adapters(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "scene_contract"
    core_file = source_root / "core" / "splitter.py"
    _write(core_file, "from scene_contract.adapters import http_split_proposer\n")
    violations = checker.check_file(core_file, source_root)
    assert len(violations) == 1
    assert "core must not import scene_contract.adapters" in violations[0]


def test_check_file_resolves_relative_imports(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "scene_contract"
    domain_file = source_root / "domain" / "models.py"
    _write(domain_file, "from ..core import settings\n")
    violations = checker.check_file(domain_file, source_root)
    assert violations == [f"{domain_file}: domain must not import scene_contract.core"]


def test_check_file_ignores_unrestricted_layers(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "scene_contract"
    cli_file = source_root / "cli" / "validate.py"
    _write(cli_file, "from scene_contract.adapters import observability\n")
    assert checker.check_file(cli_file, source_root) == []


def test_repository_respects_layer_boundaries() -> None:
    checker = _load_checker_module()
    assert checker.check_import_boundaries() == []
