"""Validate Python layer import boundaries for scene_contract."""

from __future__ import annotations

import argparse
import ast
from pathlib import Path

PACKAGE = "scene_contract"
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SOURCE_ROOT = PROJECT_ROOT / "src" / PACKAGE
KNOWN_LAYERS = {"api", "core", "adapters", "cli", "domain"}
# core stays pure and deterministic; domain stays free of every other layer.
RULES: dict[str, set[str]] = {
    "core": {"api", "adapters", "cli"},
    "domain": {"api", "core", "adapters", "cli"},
}


def _layer_for_path(path: Path, source_root: Path) -> str | None:
    try:
        relative = path.relative_to(source_root)
    except ValueError:
        return None
    return relative.parts[0] if len(relative.parts) > 1 else None


def _layers_in_module(module_name: str, imported_names: list[str]) -> set[str]:
    parts = module_name.split(".")
    if parts[0] != PACKAGE:
        return set()
    if len(parts) >= 2:
        return {parts[1]} if parts[1] in KNOWN_LAYERS else set()
    return {name for name in imported_names if name in KNOWN_LAYERS}


def _absolute_module(node: ast.ImportFrom, path: Path, source_root: Path) -> str:
    if node.level == 0:
        return node.module or ""
    relative = path.relative_to(source_root).with_suffix("")
    package_parts = [PACKAGE, *relative.parts][:-1]
    if node.level > len(package_parts):
        return ""
    base = package_parts[: len(package_parts) - node.level + 1]
    return ".".join([*base, *(node.module.split(".") if node.module else [])])


def imported_layers(node: ast.Import | ast.ImportFrom, path: Path, source_root: Path) -> set[str]:
    if isinstance(node, ast.Import):
        layers: set[str] = set()
        for alias in node.names:
            layers |= _layers_in_module(alias.name, [])
        return layers
    module = _absolute_module(node, path, source_root)
    return _layers_in_module(module, [alias.name for alias in node.names]) if module else set()


def check_file(path: Path, source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    layer = _layer_for_path(path, source_root)
    banned = RULES.get(layer or "", set())
    if not banned:
        return []

    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    violations: list[str] = []
    for node in ast.walk(tree):
        if not isinstance(node, (ast.Import, ast.ImportFrom)):
            continue
        for imported in sorted(imported_layers(node, path, source_root) & banned):
            violations.append(f"{path}: {layer} must not import {PACKAGE}.{imported}")
    return violations


def check_import_boundaries(source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    violations: list[str] = []
    for path in sorted(source_root.rglob("*.py")):
        violations.extend(check_file(path, source_root))
    return violations


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Check scene_contract layer boundaries.")
    parser.add_argument("--source-root", default=str(DEFAULT_SOURCE_ROOT))
    parsed = parser.parse_args(argv)
    violations = check_import_boundaries(Path(str(parsed.source_root)))
    if violations:
        raise SystemExit("\n".join(violations))
    print("import boundary checks passed")


if __name__ == "__main__":
    main()
