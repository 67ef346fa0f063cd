"""
Root conftest.py for pytest configuration.
Adds every package's src directory to the Python path so the packages can be
tested without installing them.
"""
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent

for src_dir in sorted((PROJECT_ROOT / "packages").glob("*/src")):
    src_path = str(src_dir.absolute())
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
