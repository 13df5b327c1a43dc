"""Python Import Source — static import discovery for Python source trees.

Packages are directories containing ``__init__.py``.  Imports are read with
the ``ast`` module, so nothing under analysis is ever executed.  Relative
imports are resolved against the package that owns the file, and every
imported module is reported as the package that contains it.

Pure Python. No toolchain dependency.
"""

import ast
import logging
from pathlib import Path
from typing import Optional

from pkgrank.sources import (
    ImportSource,
    NoPackagesError,
    ResolutionError,
    filter_imports,
)

logger = logging.getLogger(__name__)

# ── Constants ──

# Directories to skip when discovering packages
DISCOVER_EXCLUDE_DIRS = {
    "__pycache__",
    ".git",
    ".venv",
    "venv",
    "env",
    ".env",
    "node_modules",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".pytest_cache",
    ".eggs",
    "build",
    "dist",
}

# Directory name prefixes to exclude (matched with str.startswith)
DISCOVER_EXCLUDE_PREFIXES = ("pytest-of-",)

# BOM signatures for UTF-16 variants
_UTF16_LE_BOM = b"\xff\xfe"
_UTF16_BE_BOM = b"\xfe\xff"


def _read_text_safe(path: Path) -> str:
    """Read a text file, handling UTF-8, UTF-16 (BOM), and latin-1 gracefully.

    Raises OSError if the file cannot be read at all.
    """
    raw = path.read_bytes()
    if raw[:2] in (_UTF16_LE_BOM, _UTF16_BE_BOM):
        return raw.decode("utf-16")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _is_excluded(name: str) -> bool:
    return (
        name in DISCOVER_EXCLUDE_DIRS
        or name.endswith(".egg-info")
        or name.startswith(DISCOVER_EXCLUDE_PREFIXES)
    )


def _is_test_module(path: Path) -> bool:
    """True for pytest-style test modules, which are not part of a package's imports."""
    name = path.name
    return (
        name.startswith("test_")
        or name.endswith("_test.py")
        or name == "conftest.py"
    )


def package_label(pkg_dir: Path) -> Optional[str]:
    """Dotted import name of a package directory, or None if it is not a package.

    Walks upward while parent directories are packages too, so
    ``src/shop/api`` becomes ``shop.api``.
    """
    pkg_dir = pkg_dir.resolve()
    if not (pkg_dir / "__init__.py").is_file():
        return None
    parts = [pkg_dir.name]
    parent = pkg_dir.parent
    while (parent / "__init__.py").is_file() and parent != parent.parent:
        parts.append(parent.name)
        parent = parent.parent
    return ".".join(reversed(parts))


# ── AST Import Extraction ──


class _ImportCollector(ast.NodeVisitor):
    """Walks a module AST and collects absolute imported module names."""

    def __init__(self, package: Optional[str]):
        self.package = package
        self.modules: set[str] = set()

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            self.modules.add(alias.name)
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom):
        if node.level == 0:
            if node.module:
                self.modules.add(node.module)
        else:
            resolved = self._resolve_relative(node.module, node.level)
            if resolved:
                self.modules.add(resolved)
        self.generic_visit(node)

    def _resolve_relative(self, module: Optional[str], level: int) -> Optional[str]:
        """Resolve ``from ..mod import x`` against the owning package."""
        if not self.package:
            return None
        parts = self.package.split(".")
        drop = level - 1
        if drop >= len(parts):
            # Beyond the top-level package
            return None
        base = parts[: len(parts) - drop]
        if module:
            base.append(module)
        return ".".join(base)


def extract_imports(source: str, filename: str, package: Optional[str] = None) -> set[str]:
    """Parse ``source`` and return the set of modules it imports.

    Raises:
        SyntaxError: If ``source`` is not valid Python.
    """
    tree = ast.parse(source, filename=filename)
    collector = _ImportCollector(package)
    collector.visit(tree)
    return collector.modules


# ── Source ──


class PythonSource(ImportSource):
    """Resolve packages, files and imports of a Python source tree.

    ``list_packages`` must run first: it records the directory of every
    package label, and the other queries look labels up there.
    """

    vendor_segment = "_vendor"

    def __init__(self):
        self._package_dirs: dict[str, Path] = {}

    def list_packages(self, root: str) -> list[str]:
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise ResolutionError(f"Root is not a directory: {root_path}")

        found: dict[str, Path] = {}
        for init in root_path.rglob("__init__.py"):
            rel_parts = init.parent.relative_to(root_path).parts
            if any(_is_excluded(part) for part in rel_parts):
                continue
            label = package_label(init.parent)
            if label:
                found[label] = init.parent

        if not found:
            raise NoPackagesError(f"{root_path} matched no packages")

        self._package_dirs.update(found)
        logger.info("Found %d Python packages under %s", len(found), root_path)
        return sorted(found)

    def _package_dir(self, package: str) -> Path:
        try:
            return self._package_dirs[package]
        except KeyError:
            raise ResolutionError(f"Unknown package: {package!r}") from None

    def list_files(self, package: str) -> list[str]:
        pkg_dir = self._package_dir(package)
        return [
            str(path)
            for path in sorted(pkg_dir.glob("*.py"))
            if not _is_test_module(path)
        ]

    def list_imports(self, target: str, prefix: str = "") -> list[str]:
        if target in self._package_dirs:
            modules: set[str] = set()
            for path in self.list_files(target):
                modules |= self._file_imports(Path(path), target)
        else:
            path = Path(target)
            if path.suffix != ".py" or not path.is_file():
                raise ResolutionError(f"Not a known package or Python file: {target!r}")
            modules = self._file_imports(path, package_label(path.parent))
        labels = {self._owning_package(module) for module in modules}
        return filter_imports(sorted(labels), prefix, self.vendor_segment)

    def _owning_package(self, module: str) -> str:
        """Longest known package label equal to ``module`` or a dotted prefix of it.

        ``app.core`` (the module ``app/core.py``) maps to ``app``, so an import lands
        on the same node as the package that owns it.  Names outside the
        discovered tree are returned unchanged.
        """
        parts = module.split(".")
        for end in range(len(parts), 0, -1):
            candidate = ".".join(parts[:end])
            if candidate in self._package_dirs:
                return candidate
        return module

    def _file_imports(self, path: Path, package: Optional[str]) -> set[str]:
        try:
            source = _read_text_safe(path)
        except OSError as e:
            raise ResolutionError(f"Could not read {path}: {e}") from e
        try:
            return extract_imports(source, str(path), package)
        except (SyntaxError, ValueError) as e:
            raise ResolutionError(f"Could not parse {path}: {e}") from e
