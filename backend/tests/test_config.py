from shared.config import Settings


def test_default_settings():
    s = Settings()
    assert "postgresql+asyncpg" in s.DATABASE_URL
    assert "redis" in s.REDIS_URL
    assert s.LOG_LEVEL == "INFO"
    assert s.SIGNIFICANCE_ACTION_WINDOW_SECONDS == 0.5
    assert s.MIN_SIGNIFICANT_CHARS == 2
    assert s.SNAPSHOT_CHANNEL_PREFIX == "annotations"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://test:test@db:5432/testdb")
    monkeypatch.setenv("REDIS_URL", "redis://redis-test:6379")
    monkeypatch.setenv("MIN_SIGNIFICANT_CHARS", "5")
    monkeypatch.setenv("SIGNIFICANCE_ACTION_WINDOW_SECONDS", "1.5")

    s = Settings()
    assert s.DATABASE_URL == "postgresql+asyncpg://test:test@db:5432/testdb"
    assert s.REDIS_URL == "redis://redis-test:6379"
    assert s.MIN_SIGNIFICANT_CHARS == 5
    assert s.SIGNIFICANCE_ACTION_WINDOW_SECONDS == 1.5
