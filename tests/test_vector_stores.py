import pytest

from conftest import FakeChromaClient, FakeCollection
from core.domain import VectorRecord
from core.errors import StoreWriteError
from infrastructure.vector_stores import ChromaDBVectorStore


def _records(count):
    return [
        VectorRecord(
            id=f"familles.xlsx-{i}-1767225600000",
            values=[0.1, 0.2],
            metadata={"filename": "familles.xlsx", "chunkIndex": i, "text": f"chunk {i}"},
        )
        for i in range(count)
    ]


def _store(collection, batch_size=100):
    client = FakeChromaClient(collection)
    return ChromaDBVectorStore(lambda: client, "casa-ramadan-2026", batch_size=batch_size), client


async def test_upsert_writes_sequential_batches(fake_collection):
    store, client = _store(fake_collection)

    assert await store.upsert(_records(250)) == 250

    assert [len(call["ids"]) for call in fake_collection.upsert_calls] == [100, 100, 50]
    assert client.opened == [{"name": "casa-ramadan-2026", "metadata": {"hnsw:space": "cosine"}}]


async def test_empty_upsert_does_not_open_the_store(fake_collection):
    store, client = _store(fake_collection)

    assert await store.upsert([]) == 0
    assert client.opened == []


async def test_failed_batch_keeps_earlier_batches():
    collection = FakeCollection(fail_on_call=2)
    store, _ = _store(collection)

    with pytest.raises(StoreWriteError) as exc_info:
        await store.upsert(_records(250))

    assert exc_info.value.batches_written == 1
    assert exc_info.value.total_batches == 3
    assert "partially indexed" in exc_info.value.message
    assert len(collection.stored) == 100
    assert len(collection.upsert_calls) == 2


async def test_unreachable_store_raises_store_write_error():
    def broken_client():
        raise ConnectionError("no route to host")

    store = ChromaDBVectorStore(broken_client, "casa-ramadan-2026")
    with pytest.raises(StoreWriteError) as exc_info:
        await store.upsert(_records(1))
    assert exc_info.value.batches_written == 0


async def test_query_returns_best_first_with_similarity_scores(fake_collection):
    store, _ = _store(fake_collection)
    await store.upsert(_records(3))

    matches = await store.query([0.1, 0.2], top_k=2)

    assert [match.id for match in matches] == ["familles.xlsx-0-1767225600000", "familles.xlsx-1-1767225600000"]
    assert matches[0].score == pytest.approx(0.9)
    assert matches[1].score == pytest.approx(0.8)
    assert matches[0].metadata["text"] == "chunk 0"
    assert fake_collection.last_query == {"n_results": 2, "where": None}


async def test_query_combines_several_filters(fake_collection):
    store, _ = _store(fake_collection)

    await store.query([0.1], top_k=5, metadata_filter={"filename": "a.pdf", "documentType": "other"})

    assert fake_collection.last_query["where"] == {
        "$and": [{"filename": "a.pdf"}, {"documentType": "other"}]
    }


async def test_text_is_taken_from_documents_when_missing_in_metadata(fake_collection):
    fake_collection.stored.append({"id": "x-0-1", "metadata": {"filename": "x.txt"}, "document": "Nisab"})
    store, _ = _store(fake_collection)

    (match,) = await store.query([0.1], top_k=1)

    assert match.metadata == {"filename": "x.txt", "text": "Nisab"}
