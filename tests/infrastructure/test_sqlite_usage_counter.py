import threading

from summify_search.infrastructure.storage.sqlite_usage_counter import SQLiteUsageCounter


def test_increment_returns_new_value(tmp_path):
    counter = SQLiteUsageCounter(tmp_path / "usage.db")
    assert counter.current("alice") == 0
    assert counter.increment("alice") == 1
    assert counter.increment("alice") == 2
    assert counter.current("alice") == 2
    assert counter.current("bob") == 0


def test_set_and_reset(tmp_path):
    counter = SQLiteUsageCounter(tmp_path / "usage.db")
    counter.set("alice", 9)
    assert counter.increment("alice") == 10
    counter.reset("alice")
    assert counter.current("alice") == 0


def test_concurrent_increments_are_not_lost(tmp_path):
    counter = SQLiteUsageCounter(tmp_path / "usage.db")

    def bump():
        for _ in range(25):
            counter.increment("team")

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.current("team") == 100


def test_counts_survive_reopen(tmp_path):
    path = tmp_path / "usage.db"
    first = SQLiteUsageCounter(path)
    first.increment("alice")
    first.close()
    assert SQLiteUsageCounter(path).current("alice") == 1


def test_increment_refuses_to_pass_limit(tmp_path):
    counter = SQLiteUsageCounter(tmp_path / "usage.db")
    counter.set("alice", 10)
    assert counter.increment("alice", limit=10) is None
    assert counter.current("alice") == 10
    assert counter.increment("alice", limit=11) == 11
    assert counter.increment("bob", limit=0) is None
    assert counter.current("bob") == 0
    assert counter.increment("bob", limit=1) == 1
    assert counter.increment("bob", limit=1) is None
    counter.close()


def test_concurrent_limited_increments_stop_at_limit(tmp_path):
    counter = SQLiteUsageCounter(tmp_path / "usage.db")
    counter.set("team", 5)
    results = []

    def spend():
        results.append(counter.increment("team", limit=10))

    threads = [threading.Thread(target=spend) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.current("team") == 10
    assert sorted(r for r in results if r is not None) == [6, 7, 8, 9, 10]
    assert results.count(None) == 15
    counter.close()
