import json

import pytest

from summify_search.interface.cli.main import main


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("SUMMIFY_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("VECTOR_BACKEND", "sqlite")
    monkeypatch.setenv("EMBEDDING_BACKEND", "none")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")
    return tmp_path


def test_seed_then_search(env, capsys):
    assert main(["seed"]) == 0
    assert "Seeded 9 chapters" in capsys.readouterr().out

    assert main(["search", "leadership", "--subscriber", "u1", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["searchType"] == "enhanced_text_search"
    assert payload["books"][0]["title"] == "Good to Great"
    assert payload["queriesUsed"] == 1

    assert main(["search", "leadership", "--subscriber", "u1", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)["queriesUsed"] == 2


def test_seed_twice_is_a_no_op(env, capsys):
    main(["seed"])
    capsys.readouterr()
    assert main(["seed"]) == 0
    assert "nothing seeded" in capsys.readouterr().out


def test_exhausted_allowance_exits_with_upgrade_code(env, capsys):
    main(["seed"])
    capsys.readouterr()
    assert main(["search", "leadership", "--usage", "10"]) == 2
    out = capsys.readouterr().out
    assert "[UPGRADE]" in out
    assert "-> Suggested plan: scholar" in out
    assert out.isascii()


def test_blank_query_is_an_error(env, capsys):
    assert main(["search", "   "]) == 1
    assert "InvalidQuery" in capsys.readouterr().err


def test_tiers(env, capsys):
    assert main(["tiers"]) == 0
    tiers = json.loads(capsys.readouterr().out)
    assert tiers[0]["name"] == "free"
    assert tiers[0]["maxChapters"] == 5


def test_index_without_embedding_backend_fails(env, capsys):
    assert main(["index"]) == 1
    assert "EMBEDDING_BACKEND" in capsys.readouterr().err
