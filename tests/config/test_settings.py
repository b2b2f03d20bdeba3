from summify_search.config.settings import AppSettings


def test_defaults(monkeypatch):
    for name in ("VECTOR_BACKEND", "EMBEDDING_BACKEND", "CACHE_BACKEND", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    s = AppSettings()
    assert s.vector_backend == "sqlite"
    assert s.embedding_backend == "openai"
    assert s.cache_backend == "memory"
    assert s.openai_api_key == ""
    assert s.results_per_book == 3
    assert s.max_books == 12
    assert s.min_average_score == 10


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SUMMIFY_DB_PATH", "/tmp/x.db")
    monkeypatch.setenv("VECTOR_BACKEND", "QDRANT")
    monkeypatch.setenv("EMBEDDING_DIM", "384")
    monkeypatch.setenv("ENRICHMENT_TIMEOUT_S", "2.5")
    monkeypatch.setenv("TELEMETRY_ENABLED", "yes")
    monkeypatch.setenv("SUMMIFY_LOG_LEVEL", "debug")

    s = AppSettings()

    assert s.db_path == "/tmp/x.db"
    assert s.vector_backend == "qdrant"
    assert s.embedding_dim == 384
    assert s.enrichment_timeout_s == 2.5
    assert s.telemetry_enabled is True
    assert s.log_level == "DEBUG"


def test_explicit_values_override_environment(monkeypatch):
    monkeypatch.setenv("MAX_BOOKS", "3")
    assert AppSettings(max_books=7).max_books == 7
