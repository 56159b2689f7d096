"""
Shared pytest setup.

Runs before any test module imports the server, so the app is built
without rate limiting and with a throwaway data directory.
"""

import os
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("FORGE_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("FORGE_DATA_DIR", tempfile.mkdtemp(prefix="forge_test_"))
os.environ.setdefault("FORGE_LOG_LEVEL", "WARNING")

import pytest


E2E_PROMPT = "A fast explosive particle burst with smooth glowing trails"


def run_inline(target, *args):
    """Synchronous stand-in for the runner's background thread."""
    target(*args)


@pytest.fixture
def e2e_prompt():
    return E2E_PROMPT


@pytest.fixture
def inline_spawn():
    return run_inline
