"""Go Import Source — package and import discovery via ``go list``.

Every query is a separate ``go list`` invocation run with
``subprocess.run``.  Queries are independent, so one source instance can
serve all builder worker threads at once.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from pkgrank.sources import (
    ImportSource,
    NoPackagesError,
    ResolutionError,
    filter_imports,
)

logger = logging.getLogger(__name__)

_NO_MATCH_PREFIX = "go: warning: "
_NO_MATCH_SUFFIX = "matched no packages"


class GoListSource(ImportSource):
    """Resolve Go packages, files and imports with the ``go`` toolchain.

    Args:
        go_binary: Name or path of the ``go`` executable.
        cwd: Working directory for ``go list`` (module root).  Defaults to
            the current process directory.
        timeout: Optional per-command timeout in seconds.  ``None`` waits
            indefinitely.
    """

    vendor_segment = "vendor/"

    def __init__(
        self,
        go_binary: str = "go",
        cwd: Optional[str | Path] = None,
        timeout: Optional[float] = None,
    ):
        self.go_binary = go_binary
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout

    # ── Command Execution ──

    def _go_list(self, *args: str, merge_stderr: bool = False) -> str:
        """Run ``go list <args>`` and return its standard output.

        With ``merge_stderr`` the toolchain's diagnostics are folded into the
        returned text.  Otherwise they are kept apart, so lines such as
        ``go: downloading ...`` never reach the caller, and are only reported
        when the command fails.

        Raises:
            ResolutionError: On a non-zero exit, a missing binary or a timeout.
        """
        cmd = [self.go_binary, "list", *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                cwd=str(self.cwd) if self.cwd else None,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ResolutionError(
                f"'{' '.join(cmd)}' timed out after {e.timeout}s"
            ) from e
        except OSError as e:
            raise ResolutionError(f"Could not run {self.go_binary!r}: {e}") from e

        diagnostics = (result.stderr or "").strip()
        if result.returncode != 0:
            raise ResolutionError(
                f"'{' '.join(cmd)}' exited with status {result.returncode}: "
                f"{diagnostics or result.stdout.strip()}"
            )
        if diagnostics:
            logger.debug("%s: %s", " ".join(cmd), diagnostics)
        return result.stdout

    # ── Queries ──

    def list_packages(self, root: str) -> list[str]:
        # The "matched no packages" warning is written to stderr
        out = self._go_list(root, merge_stderr=True).strip()
        if out.startswith(_NO_MATCH_PREFIX) and out.endswith(_NO_MATCH_SUFFIX):
            raise NoPackagesError(out)
        if not out:
            raise NoPackagesError(f"pattern {root!r} matched no packages")
        return out.split("\n")

    def list_files(self, package: str) -> list[str]:
        pkg_dir = self._go_list("-f", "{{ .Dir }}", package).strip()
        basenames = self._go_list("-f", '{{ join .GoFiles "\\n" }}', package)
        return [
            os.path.join(pkg_dir, name)
            for name in basenames.split("\n")
            if name.strip()
        ]

    def list_imports(self, target: str, prefix: str = "") -> list[str]:
        out = self._go_list("-f", '{{ join .Imports "\\n" }}', target)
        return filter_imports(
            (line.strip() for line in out.split("\n")),
            prefix,
            self.vendor_segment,
        )
