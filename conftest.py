import pytest


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keeps every test away from the real data/ and config/ directories."""
    data_dir = tmp_path / "data"
    config_dir = tmp_path / "config"
    monkeypatch.setattr("fintrack.local_store.DATA_DIR", data_dir)
    monkeypatch.setattr("fintrack.config.CONFIG_DIR", config_dir)
    monkeypatch.delenv("FINTRACK_BACKEND", raising=False)
    monkeypatch.delenv("FINTRACK_USE_MOCK", raising=False)
    return {"data_dir": data_dir, "config_dir": config_dir}
