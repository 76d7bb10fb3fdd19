import threading

from hostprep.pipeline.store import Store, StoreKey, get_input, get_input_str, input_key, set_input


def test_set_get_last_write_wins():
    s = Store()
    s.set("ssh:target_host", "a")
    s.set("ssh:target_host", "b")
    assert s.get("ssh:target_host") == "b"
    assert "ssh:target_host" in s
    assert len(s) == 1


def test_lookup_distinguishes_missing_from_none():
    s = Store()
    s.set("k", None)
    assert s.lookup("k") == (None, True)
    assert s.lookup("nope") == (None, False)
    assert s.get("nope", "dflt") == "dflt"


def test_delete_and_snapshot_is_a_copy():
    s = Store({"a": 1, "b": 2})
    snap = s.snapshot()
    s.delete("a")
    s.delete("missing")
    assert snap == {"a": 1, "b": 2}
    assert s.snapshot() == {"b": 2}


def test_input_key_format_and_helpers():
    assert input_key("B", "token") == "step:B:input:token"
    s = Store()
    set_input(s, "B", "token", "  abc123 ")
    assert get_input(s, "B", "token") == ("  abc123 ", True)
    assert get_input_str(s, "B", "token") == "abc123"
    set_input(s, "B", "blank", "   ")
    assert get_input_str(s, "B", "blank") is None
    assert get_input_str(s, "B", "missing") is None


def test_from_answers_replays_operator_values():
    s = Store.from_answers({"ssh_connection": {"host": "10.0.0.5", "port": "2222"}})
    assert s.get("step:ssh_connection:input:host") == "10.0.0.5"
    assert s.get("step:ssh_connection:input:port") == "2222"


def test_typed_key_mismatch_reads_as_absent():
    count = StoreKey("demo", "count", int)
    s = Store()
    assert count.get(s) is None

    s.set("demo:count", "not-an-int")
    assert count.get(s) is None

    count.set(s, 3)
    assert count.get(s) == 3
    assert str(count) == "demo:count"

    count.clear(s)
    assert "demo:count" not in s


def test_concurrent_writers_do_not_lose_keys():
    s = Store()

    def writer(prefix):
        for i in range(200):
            s.set(f"{prefix}:{i}", i)

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(s) == 800
