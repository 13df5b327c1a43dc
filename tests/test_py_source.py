"""Tests for the Python (AST) import source.

Covers: package discovery and labelling, excluded directories, file
listing, absolute and relative import extraction, filtering, and
parse/read failures.
"""

import textwrap
from pathlib import Path

import pytest

from pkgrank.builder import build_graph
from pkgrank.py_source import (
    PythonSource,
    _is_test_module,
    extract_imports,
    package_label,
)
from pkgrank.sources import NoPackagesError, ResolutionError


# ── Fixtures ──


def _write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


@pytest.fixture
def src_tree(tmp_path):
    """A src-layout project with a top-level package and a subpackage."""
    src = tmp_path / "src"
    _write(src / "app" / "__init__.py", "from app.core import run\n")
    _write(src / "app" / "core.py", """\
        import os
        import json
        from app.util import helper
        from . import models
        """)
    _write(src / "app" / "models.py", """\
        from .util import helper
        from ..outside import nothing
        """)
    _write(src / "app" / "util" / "__init__.py", """\
        from .. import core
        from ..models import Model
        import pip._vendor.requests
        """)
    _write(src / "app" / "test_core.py", "import pytest\n")
    # Not a package
    _write(src / "scripts" / "run.py", "import app\n")
    # Excluded directories
    _write(src / ".venv" / "lib" / "site" / "__init__.py", "")
    _write(src / "__pycache__" / "stale" / "__init__.py", "")
    return src


# ── Helpers ──


class TestPackageLabel:
    def test_top_level_package(self, src_tree):
        assert package_label(src_tree / "app") == "app"

    def test_nested_package(self, src_tree):
        assert package_label(src_tree / "app" / "util") == "app.util"

    def test_plain_directory(self, src_tree):
        assert package_label(src_tree / "scripts") is None


class TestIsTestModule:
    @pytest.mark.parametrize("name", ["test_core.py", "core_test.py", "conftest.py"])
    def test_test_modules(self, name):
        assert _is_test_module(Path(name)) is True

    def test_regular_module(self):
        assert _is_test_module(Path("core.py")) is False


class TestExtractImports:
    def test_absolute_imports(self):
        src = "import os, sys\nimport a.b as ab\nfrom c.d import e\n"
        assert extract_imports(src, "x.py") == {"os", "sys", "a.b", "c.d"}

    def test_relative_import_resolution(self):
        src = "from . import x\nfrom .m import y\nfrom ..n import z\n"
        assert extract_imports(src, "x.py", package="pkg.sub") == {
            "pkg.sub", "pkg.sub.m", "pkg.n",
        }

    def test_relative_import_without_package_ignored(self):
        assert extract_imports("from . import x\n", "x.py") == set()

    def test_relative_import_beyond_top_ignored(self):
        assert extract_imports("from ... import x\n", "x.py", package="pkg") == set()

    def test_nested_imports_found(self):
        src = "def f():\n    import json\n    from os import path\n"
        assert extract_imports(src, "x.py") == {"json", "os"}

    def test_syntax_error_raises(self):
        with pytest.raises(SyntaxError):
            extract_imports("def broken(:\n", "x.py")


# ── Source ──


class TestListPackages:
    def test_discovers_packages(self, src_tree):
        source = PythonSource()
        assert source.list_packages(str(src_tree)) == ["app", "app.util"]

    def test_root_inside_package_keeps_full_label(self, src_tree):
        source = PythonSource()
        assert source.list_packages(str(src_tree / "app" / "util")) == ["app.util"]

    def test_missing_root_raises(self, tmp_path):
        source = PythonSource()
        with pytest.raises(ResolutionError):
            source.list_packages(str(tmp_path / "missing"))

    def test_no_packages(self, tmp_path):
        _write(tmp_path / "script.py", "print('hi')\n")
        source = PythonSource()
        with pytest.raises(NoPackagesError, match="matched no packages"):
            source.list_packages(str(tmp_path))


class TestListFiles:
    def test_lists_own_modules_without_tests(self, src_tree):
        source = PythonSource()
        source.list_packages(str(src_tree))
        names = [Path(p).name for p in source.list_files("app")]
        assert names == ["__init__.py", "core.py", "models.py"]

    def test_unknown_package_raises(self, src_tree):
        source = PythonSource()
        source.list_packages(str(src_tree))
        with pytest.raises(ResolutionError, match="Unknown package"):
            source.list_files("nope")


class TestListImports:
    def test_package_imports_are_unique_and_sorted(self, src_tree):
        source = PythonSource()
        source.list_packages(str(src_tree))
        assert source.list_imports("app") == [
            "app", "app.util", "json", "os",
        ]

    def test_file_imports_resolve_relative_to_owner(self, src_tree):
        source = PythonSource()
        source.list_packages(str(src_tree))
        path = src_tree / "app" / "util" / "__init__.py"
        # app.models is owned by app; pip._vendor.* is dropped as vendored
        assert source.list_imports(str(path)) == ["app"]

    def test_prefix_filter(self, src_tree):
        source = PythonSource()
        source.list_packages(str(src_tree))
        assert source.list_imports("app", prefix="app.") == ["app.util"]

    def test_syntax_error_raises_resolution_error(self, tmp_path):
        _write(tmp_path / "bad" / "__init__.py", "def broken(:\n")
        source = PythonSource()
        source.list_packages(str(tmp_path))
        with pytest.raises(ResolutionError, match="Could not parse"):
            source.list_imports("bad")

    def test_unknown_target_raises(self, tmp_path):
        source = PythonSource()
        with pytest.raises(ResolutionError):
            source.list_imports(str(tmp_path / "nope.txt"))


class TestImportsMapToPackages:
    """Module imports land on the package node that owns the module."""

    @pytest.fixture
    def module_tree(self, tmp_path):
        _write(tmp_path / "app" / "__init__.py")
        _write(tmp_path / "app" / "core.py", "import app.api\n")
        _write(tmp_path / "app" / "api" / "__init__.py")
        _write(tmp_path / "app" / "api" / "handler.py", """\
            from app.core import run
            from app import core
            """)
        _write(tmp_path / "app" / "api" / "routes.py", "from app.core import run\n")
        return tmp_path

    def _build(self, root, per_file):
        source = PythonSource()
        packages = source.list_packages(str(root))
        return packages, build_graph(source, packages, per_file=per_file).graph

    def test_module_import_is_owning_package(self, module_tree):
        source = PythonSource()
        source.list_packages(str(module_tree))
        handler = module_tree / "app" / "api" / "handler.py"
        assert source.list_imports(str(handler)) == ["app"]

    def test_longest_package_prefix_wins(self, module_tree):
        _write(module_tree / "app" / "api" / "v1" / "__init__.py")
        _write(module_tree / "app" / "worker.py", "import app.api.v1.views\n")
        source = PythonSource()
        source.list_packages(str(module_tree))
        assert source.list_imports(str(module_tree / "app" / "worker.py")) == ["app.api.v1"]

    def test_third_party_names_unchanged(self, module_tree):
        _write(module_tree / "app" / "api" / "client.py", "import requests.adapters\n")
        source = PythonSource()
        source.list_packages(str(module_tree))
        path = module_tree / "app" / "api" / "client.py"
        assert source.list_imports(str(path)) == ["requests.adapters"]

    @pytest.mark.parametrize("per_file", [False, True])
    def test_graph_nodes_are_package_labels(self, module_tree, per_file):
        packages, graph = self._build(module_tree, per_file)
        assert packages == ["app", "app.api"]
        assert set(graph.labels()) == {"app", "app.api"}
        assert graph.weight("app", "app.api") == 1.0

    def test_one_dependency_one_edge(self, module_tree):
        _, graph = self._build(module_tree, per_file=False)
        assert sorted(graph.edges()) == [("app", "app.api", 1.0), ("app.api", "app", 1.0)]

    def test_per_file_counts_each_importing_file(self, module_tree):
        _, graph = self._build(module_tree, per_file=True)
        assert graph.weight("app.api", "app") == 2.0
