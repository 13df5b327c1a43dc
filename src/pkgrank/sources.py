"""Import Sources — resolve packages, files and import lists for a project.

An import source answers three questions the graph builder asks:

  1. Which packages live under a root specifier?
  2. Which source files belong to a package?
  3. Which import labels does a package (or a single file) reference?

Concrete sources live in ``pkgrank.go_source`` (shells out to ``go list``)
and ``pkgrank.py_source`` (static AST analysis).  Both apply the same
filtering rules via :func:`filter_imports`.
"""

import logging
from typing import Iterable

logger = logging.getLogger(__name__)


# ── Exceptions ──


class ResolutionError(Exception):
    """An import source could not resolve a root, package, file or import query."""


class NoPackagesError(ResolutionError):
    """The root specifier matched no packages.

    Separate from :class:`ResolutionError` because it is a common input
    mistake rather than a broken environment.
    """


# ── Filtering ──


def filter_imports(
    imports: Iterable[str],
    prefix: str = "",
    vendor_segment: str = "vendor/",
) -> list[str]:
    """Drop empty, vendored and off-prefix labels, preserving order.

    An empty ``prefix`` disables prefix filtering.
    """
    filtered: list[str] = []
    for imp in imports:
        if not imp:
            continue
        if vendor_segment and vendor_segment in imp:
            continue
        if not imp.startswith(prefix):
            continue
        filtered.append(imp)
    return filtered


# ── Base Class ──


class ImportSource:
    """Synchronous query service the graph builder fans out against.

    Subclasses must be safe to call from several worker threads at once.
    """

    #: Labels containing this substring are treated as vendored copies.
    vendor_segment: str = "vendor/"

    def list_packages(self, root: str) -> list[str]:
        """Return the package labels matched by ``root``.

        Raises:
            NoPackagesError: If ``root`` matched nothing.
            ResolutionError: If the query itself failed.
        """
        raise NotImplementedError

    def list_files(self, package: str) -> list[str]:
        """Return the source file paths belonging to ``package``."""
        raise NotImplementedError

    def list_imports(self, target: str, prefix: str = "") -> list[str]:
        """Return filtered import labels for a package label or a file path."""
        raise NotImplementedError
