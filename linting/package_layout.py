#!/usr/bin/env python
"""Layout rules for the rtengine package.

Rules:
- at most one top-level non-dataclass class per module
- a module that defines `__all__` does so once, as its last top-level statement
- no import cycles between rtengine modules (imports under `if TYPE_CHECKING:` are ignored)
"""

from __future__ import annotations

import ast
import sys
import argparse
from pathlib import Path
from collections import defaultdict

ROOT = Path(__file__).resolve().parents[1]
PACKAGE = "rtengine"


def _is_dataclass(node: ast.ClassDef) -> bool:
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        name = target.id if isinstance(target, ast.Name) else getattr(target, "attr", None)
        if name == "dataclass":
            return True
    return False


def _is_type_checking_block(node: ast.stmt) -> bool:
    if not isinstance(node, ast.If):
        return False
    test = node.test
    return (isinstance(test, ast.Name) and test.id == "TYPE_CHECKING") or (
        isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"
    )


def _module_name(path: Path, root: Path) -> str:
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def check_classes(tree: ast.Module) -> list[str]:
    names = [n.name for n in tree.body if isinstance(n, ast.ClassDef) and not _is_dataclass(n)]
    if len(names) > 1:
        return [f"{len(names)} non-dataclass classes ({', '.join(names)})"]
    return []


def check_all_placement(tree: ast.Module) -> list[str]:
    positions = [
        idx
        for idx, node in enumerate(tree.body)
        if isinstance(node, (ast.Assign, ast.AnnAssign, ast.AugAssign))
        and any(
            isinstance(t, ast.Name) and t.id == "__all__"
            for t in (node.targets if isinstance(node, ast.Assign) else [node.target])
        )
    ]
    if not positions:
        return []
    if len(positions) > 1:
        return ["`__all__` assigned more than once"]
    trailing = tree.body[positions[0] + 1 :]
    return [f"line {node.lineno}: statement after `__all__`" for node in trailing]


def _imports(tree: ast.Module, module: str, is_package: bool) -> set[str]:
    skipped: set[int] = set()
    for node in ast.walk(tree):
        if _is_type_checking_block(node):
            skipped.update(id(child) for stmt in node.body for child in ast.walk(stmt))

    out: set[str] = set()
    for node in ast.walk(tree):
        if id(node) in skipped:
            continue
        if isinstance(node, ast.Import):
            out.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                base = module.split(".")
                if not is_package:
                    base = base[:-1]
                base = base[: len(base) - (node.level - 1)]
                target = ".".join(base + ([node.module] if node.module else []))
                if node.module is None:
                    out.update(f"{target}.{alias.name}" for alias in node.names)
                    continue
            else:
                target = node.module or ""
            out.add(target)
            out.update(f"{target}.{alias.name}" for alias in node.names)
    return {name for name in out if name == PACKAGE or name.startswith(f"{PACKAGE}.")}


def find_cycles(graph: dict[str, set[str]]) -> list[list[str]]:
    """Return one witness path per cycle found by depth-first search."""
    visiting: list[str] = []
    done: set[str] = set()
    cycles: list[list[str]] = []

    def visit(node: str) -> None:
        visiting.append(node)
        for dep in sorted(graph.get(node, ())):
            if dep in visiting:
                cycles.append(visiting[visiting.index(dep) :] + [dep])
            elif dep not in done:
                visit(dep)
        visiting.pop()
        done.add(node)

    for node in sorted(graph):
        if node not in done:
            visit(node)
    return cycles


def collect_violations(root: Path = ROOT) -> list[str]:
    package_dir = root / PACKAGE
    violations: list[str] = []
    trees: dict[str, tuple[ast.Module, bool]] = {}

    for path in sorted(package_dir.rglob("*.py")):
        if "__pycache__" in path.parts:
            continue
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        rel = path.relative_to(root)
        violations.extend(f"{rel}: {msg}" for msg in check_classes(tree))
        violations.extend(f"{rel}: {msg}" for msg in check_all_placement(tree))
        trees[_module_name(path, root)] = (tree, path.name == "__init__.py")

    graph: dict[str, set[str]] = defaultdict(set)
    for module, (tree, is_package) in trees.items():
        for target in _imports(tree, module, is_package):
            if target in trees and target != module:
                graph[module].add(target)
    violations.extend(f"import cycle: {' -> '.join(cycle)}" for cycle in find_cycles(graph))
    return violations


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check rtengine package layout rules.")
    parser.add_argument("--root", default=str(ROOT), help="Repository root (default: this checkout)")
    args = parser.parse_args(argv)

    violations = collect_violations(Path(args.root).resolve())
    if violations:
        print("Package layout violations:", file=sys.stderr)
        for violation in violations:
            print(f"  {violation}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
