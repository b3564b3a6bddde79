from __future__ import annotations

import pytest

from linktips.errors import CodecError, StorageError
from linktips.runtime import codec
from linktips.runtime.collections import U128, PersistentMap, PersistentSet, PersistentVector
from linktips.runtime.storage import JournaledStorage, MemoryBackend, StorageBackend


# ---------------------------------------------------------------------------
# codec
# ---------------------------------------------------------------------------


def test_dumps_is_canonical_regardless_of_insertion_order():
    a = codec.dumps({"b": 1, "a": [1, 2], "c": b"\x00"})
    b = codec.dumps({"c": b"\x00", "a": (1, 2), "b": 1})
    assert a == b
    assert codec.loads(a) == {"a": [1, 2], "b": 1, "c": b"\x00"}


def test_dumps_rejects_unencodable_values():
    with pytest.raises(CodecError):
        codec.dumps({"x": 1.5j})
    with pytest.raises(CodecError):
        codec.dumps({(1, 2): "tuple key"})


def test_loads_rejects_truncated_and_non_bytes():
    with pytest.raises(CodecError):
        codec.loads(b"\x82\x01")  # array(2) with a single element
    with pytest.raises(CodecError):
        codec.loads("not bytes")  # type: ignore[arg-type]


def test_u128_is_fixed_width_big_endian():
    assert codec.encode_u128(0) == b"\x00" * 16
    assert codec.encode_u128(1) == b"\x00" * 15 + b"\x01"
    assert codec.decode_u128(codec.encode_u128(codec.U128_MAX)) == codec.U128_MAX
    # Byte order follows numeric order.
    assert codec.encode_u128(255) < codec.encode_u128(256)


@pytest.mark.parametrize("bad", [-1, codec.U128_MAX + 1, True, "5"])
def test_u128_rejects_out_of_range_or_non_int(bad):
    with pytest.raises(CodecError):
        codec.encode_u128(bad)


def test_decode_u128_rejects_wrong_width():
    with pytest.raises(CodecError):
        codec.decode_u128(b"\x00" * 8)


# ---------------------------------------------------------------------------
# backends & journal
# ---------------------------------------------------------------------------


def test_memory_backend_satisfies_protocol_and_iterates_in_order():
    be = MemoryBackend()
    assert isinstance(be, StorageBackend)
    be.set(b"p:b", b"2")
    be.set(b"p:a", b"1")
    be.set(b"q:a", b"x")
    assert list(be.iter_prefix(b"p:")) == [(b"p:a", b"1"), (b"p:b", b"2")]
    restored = MemoryBackend.load(be.dump())
    assert restored.get(b"q:a") == b"x"
    assert len(restored) == 3


def test_journal_commit_applies_and_rollback_discards():
    be = MemoryBackend({b"k:old": b"old"})
    s = JournaledStorage(be)

    s.begin()
    s.set(b"k:new", b"new")
    s.delete(b"k:old")
    assert s.get(b"k:new") == b"new"
    assert s.get(b"k:old") is None
    assert be.get(b"k:new") is None  # nothing reaches the backend before commit
    assert be.get(b"k:old") == b"old"
    assert s.rollback() == 2
    assert s.get(b"k:new") is None
    assert s.get(b"k:old") == b"old"

    s.begin()
    s.set(b"k:new", b"new")
    s.delete(b"k:old")
    s.commit()
    assert be.get(b"k:new") == b"new"
    assert not be.exists(b"k:old")


def test_journal_iter_prefix_merges_overlay():
    be = MemoryBackend({b"p:1": b"a", b"p:2": b"b"})
    s = JournaledStorage(be)
    s.begin()
    s.delete(b"p:1")
    s.set(b"p:3", b"c")
    s.set(b"p:2", b"B")
    assert list(s.iter_prefix(b"p:")) == [(b"p:2", b"B"), (b"p:3", b"c")]
    s.rollback()


def test_journal_transaction_misuse():
    s = JournaledStorage()
    with pytest.raises(StorageError):
        s.commit()
    with pytest.raises(StorageError):
        s.rollback()
    s.begin()
    with pytest.raises(StorageError):
        s.begin()
    s.rollback()


def test_read_only_view_rejects_writes_but_reads_backend():
    s = JournaledStorage()
    s.set(b"k", b"v")
    ro = s.read_only_view()
    assert ro.get(b"k") == b"v"
    with pytest.raises(StorageError):
        ro.set(b"k", b"w")
    with pytest.raises(StorageError):
        ro.delete(b"k")


def test_key_and_value_caps():
    s = JournaledStorage()
    with pytest.raises(StorageError):
        s.set(b"", b"v")
    with pytest.raises(StorageError):
        s.set(b"k" * (s.limits.max_key_bytes + 1), b"v")
    with pytest.raises(StorageError):
        s.set(b"k", b"v" * (s.limits.max_value_bytes + 1))
    with pytest.raises(StorageError):
        s.get("text-key")  # type: ignore[arg-type]


def test_typed_helpers():
    s = JournaledStorage()
    assert s.get_str(b"name") is None
    assert s.get_u128(b"amount") == 0
    s.set_str(b"name", "alice.near")
    s.set_u128(b"amount", 42)
    s.set_record(b"rec", {"a": 1})
    assert s.get_str(b"name") == "alice.near"
    assert s.get_u128(b"amount") == 42
    assert s.get_record(b"rec") == {"a": 1}


# ---------------------------------------------------------------------------
# collections
# ---------------------------------------------------------------------------


def test_persistent_map_basic_ops():
    s = JournaledStorage()
    m = PersistentMap(s, b"m:")
    other = PersistentMap(s, b"n:")
    m.set("b", "2")
    m.set("a", "1")
    other.set("a", "x")

    assert m.get("a") == "1"
    assert m.get("zzz", "default") == "default"
    assert m.contains("b") and "b" in m
    assert m.keys() == ["a", "b"]
    assert list(m.items()) == [("a", "1"), ("b", "2")]
    assert len(m) == 2

    m.delete("a")
    assert not m.contains("a")
    assert m.clear() == 1
    assert len(m) == 0
    assert other.get("a") == "x"


def test_persistent_map_u128_values():
    m = PersistentMap(JournaledStorage(), b"tot:", U128)
    assert m.get("post-1", 0) == 0
    m.set("post-1", 10**30)
    assert m.get("post-1", 0) == 10**30


def test_persistent_set_values_are_numeric_ascending():
    st = PersistentSet(JournaledStorage(), b"s:")
    for v in (300, 2, 10, 2):
        st.add(v)
    assert st.values() == [2, 10, 300]
    assert st.has(10) and not st.has(11)
    st.delete(10)
    assert list(st) == [2, 300]
    assert len(st) == 2
    with pytest.raises(StorageError):
        st.add(-1)


def test_persistent_vector_push_get_iterate():
    v = PersistentVector(JournaledStorage(), b"v:")
    assert len(v) == 0
    assert v.push({"n": 0}) == 0
    assert v.push({"n": 1}) == 1
    assert len(v) == 2
    assert v.get(1) == {"n": 1}
    assert v.get(2) is None
    assert v.get(-1) is None
    assert v.contains_index(0) and not v.contains_index(2)
    assert list(v) == [{"n": 0}, {"n": 1}]


def test_vector_push_is_discarded_by_rollback():
    s = JournaledStorage()
    v = PersistentVector(s, b"v:")
    v.push({"n": 0})
    s.begin()
    assert v.push({"n": 1}) == 1
    s.rollback()
    assert len(v) == 1
    assert v.push({"n": 1}) == 1
