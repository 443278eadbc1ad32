import pytest

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import PartialWriteFailure, ValidationFailed, VersionConflict
from app.services.document_store import DeleteOp, SetOp, WriteBatch, split_path


def test_split_path():
    assert split_path("a/b/c") == ("a/b", "c")
    for bad in ("a", "a//b", "/a", "a/b/"):
        with pytest.raises(ValidationFailed):
            split_path(bad)


def test_batch_keeps_last_op_per_path():
    batch = WriteBatch().set("a/x", 1).delete("a/x").set("a/y", 2)
    assert batch.ops == [DeleteOp(path="a/x"), SetOp(path="a/y", value=2)]
    assert len(batch) == 2


@pytest.mark.asyncio
async def test_set_get_children_and_versions(store):
    await store.apply(WriteBatch().set("q/d/s1", {"n": 1}).set("q/d/s2", {"n": 2}).set("q/other/s3", {"n": 3}))
    snap = await store.get("q/d/s1")
    assert snap.value == {"n": 1} and snap.version == 1

    await store.apply(WriteBatch().set("q/d/s1", {"n": 10}))
    snap = await store.get("q/d/s1")
    assert snap.value == {"n": 10} and snap.version == 2

    kids = await store.children("q/d")
    assert sorted(kids) == ["s1", "s2"]
    assert await store.get("q/missing") is None
    assert await store.get_value("q/missing", "dflt") == "dflt"


@pytest.mark.asyncio
async def test_delete_removes_subtree_only(store):
    await store.apply(WriteBatch().set("p/a/1", True).set("p/a/2", True).set("p/ab/1", True).set("p/a", {"x": 1}))
    await store.apply(WriteBatch().delete("p/a"))
    assert await store.get("p/a") is None
    assert await store.children("p/a") == {}
    assert (await store.get("p/ab/1")).value is True


@pytest.mark.asyncio
async def test_expectation_mismatch_writes_nothing(store):
    await store.apply(WriteBatch().set("s/doc", {"v": 1}))
    batch = WriteBatch().expect("s/doc", 5).set("s/doc", {"v": 2}).set("s/other", True)
    with pytest.raises(VersionConflict):
        await store.apply(batch, sku_id="doc", transition="test")
    assert (await store.get("s/doc")).value == {"v": 1}
    assert await store.get("s/other") is None


@pytest.mark.asyncio
async def test_expect_zero_means_absent(store):
    await store.apply(WriteBatch().expect("c/new", 0).set("c/new", 1))
    with pytest.raises(VersionConflict):
        await store.apply(WriteBatch().expect("c/new", 0).set("c/new", 2))
    assert (await store.get("c/new")).value == 1


@pytest.mark.asyncio
async def test_compare_and_set(store):
    assert await store.compare_and_set("k/c", 0, {"last": 1}) is True
    assert await store.compare_and_set("k/c", 0, {"last": 1}) is False
    assert await store.compare_and_set("k/c", 1, {"last": 2}) is True
    assert await store.compare_and_set("k/c", 1, {"last": 3}) is False
    snap = await store.get("k/c")
    assert snap.value == {"last": 2} and snap.version == 2


@pytest.mark.asyncio
async def test_failed_batch_rolls_back_every_op(store, monkeypatch):
    upsert = store._upsert
    calls = []

    async def fail_second(db, path, value):
        calls.append(path)
        if len(calls) == 2:
            raise SQLAlchemyError("connection dropped")
        await upsert(db, path, value)

    monkeypatch.setattr(store, "_upsert", fail_second)
    batch = WriteBatch().set("w/first", 1).set("w/second", 2).set("w/third", 3)
    with pytest.raises(PartialWriteFailure) as ei:
        await store.apply(batch, sku_id="S1", transition="approve")
    assert ei.value.context() == {"sku_id": "S1", "transition": "approve"}
    assert calls == ["w/first", "w/second"]

    monkeypatch.undo()
    assert await store.get("w/first") is None
    assert await store.children("w") == {}
