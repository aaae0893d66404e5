import pytest


@pytest.fixture(autouse=True)
def _digest_log_dir(tmp_path, monkeypatch):
    """Keep error report files out of the source tree during tests."""
    monkeypatch.setenv("DIGEST_LOG_DIR", str(tmp_path / "logs"))
