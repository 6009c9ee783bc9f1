import os
import tempfile

# Keep application and audit logs out of the working tree
os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="filebox_test_logs_"))

from pathlib import Path  # noqa: E402

import pytest  # noqa: E402

from filebox.files import PathResolver  # noqa: E402


@pytest.fixture
def sandbox(tmp_path) -> Path:
    """Empty sandbox root."""
    root = tmp_path / "sandbox"
    root.mkdir()
    return root


@pytest.fixture
def resolver(sandbox) -> PathResolver:
    return PathResolver(sandbox)


@pytest.fixture
def docs_store(sandbox) -> Path:
    """Sandbox holding /docs/a.txt and /docs/b.txt."""
    docs = sandbox / "docs"
    docs.mkdir()
    (docs / "a.txt").write_text("alpha")
    (docs / "b.txt").write_text("bravo")
    return sandbox
