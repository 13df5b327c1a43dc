"""Shared test fixtures for pkgrank tests."""

import sys
from pathlib import Path

# Add src to path so tests can import pkgrank
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
