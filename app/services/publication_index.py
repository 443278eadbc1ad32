from __future__ import annotations

import logging

from app.canonical.v1.records import PublicationRecordV1
from app.domains.base import DomainAdapter
from app.services import paths
from app.services.document_store import DocumentStore, Snapshot, WriteBatch

log = logging.getLogger(__name__)


_UNINDEXABLE = ("", ".", "..")


def facet_value(value: object) -> str:
    return str(value).strip().replace("/", "-")


def facet_keys(adapter: DomainAdapter, record: PublicationRecordV1) -> list[str]:
    """
    Bucket keys ("tag/red", "category/RUDRAKSHA_MALA") a visible record belongs to.
    """
    keys = [f"tag/{t}" for t in record.tags]
    for facet, value in adapter.index_facets(record.attributes).items():
        v = facet_value(value)
        if v not in _UNINDEXABLE:
            keys.append(f"{facet}/{v}")
    return list(dict.fromkeys(keys))


def _bucket_entry(domain: str, key: str, sku_id: str) -> str:
    facet, _, value = key.partition("/")
    return paths.index_entry(domain, facet, value, sku_id)


class PublicationIndex:
    """
    Public catalog records of one domain (keyed by sku) and the facet buckets
    that point at them. Each record remembers the bucket keys it was last
    written under so a re-publish can drop stale memberships.
    """

    def __init__(self, store: DocumentStore, *, adapter: DomainAdapter):
        self.store = store
        self.adapter = adapter
        self.domain = adapter.key

    async def snapshot(self, sku_id: str) -> Snapshot | None:
        return await self.store.get(paths.publication(self.domain, sku_id))

    async def get(self, sku_id: str) -> PublicationRecordV1 | None:
        snap = await self.snapshot(sku_id)
        return PublicationRecordV1.model_validate(snap.value) if snap else None

    async def list_all(self) -> list[PublicationRecordV1]:
        snaps = await self.store.children(paths.public_root(self.domain))
        records = [PublicationRecordV1.model_validate(s.value) for s in snaps.values()]
        records.sort(key=lambda r: r.approved_at, reverse=True)
        return records

    async def list_visible(self) -> list[PublicationRecordV1]:
        return [r for r in await self.list_all() if r.visible]

    async def browse(self, facet: str, value: str) -> list[PublicationRecordV1]:
        v = facet_value(value)
        if v in _UNINDEXABLE:
            return []
        bucket = await self.store.children(paths.index_bucket(self.domain, facet, v))
        out: list[PublicationRecordV1] = []
        for sku_id in bucket:
            record = await self.get(sku_id)
            if record is not None and record.visible:
                out.append(record)
            elif record is None:
                log.warning("index bucket points at missing record: domain=%s facet=%s value=%s sku=%s", self.domain, facet, value, sku_id)
        return out

    def stage_publish(
        self,
        batch: WriteBatch,
        record: PublicationRecordV1,
        previous: PublicationRecordV1 | None = None,
    ) -> PublicationRecordV1:
        """
        Write the record and its bucket memberships. Hidden records sit in no bucket.
        Keys held by the previous version but not the new one are removed.
        """
        keys = facet_keys(self.adapter, record) if record.visible else []
        stale = set(previous.indexed) - set(keys) if previous else set()

        for key in sorted(stale):
            batch.delete(_bucket_entry(self.domain, key, record.sku_id))
        for key in keys:
            batch.set(_bucket_entry(self.domain, key, record.sku_id), True)

        record = record.model_copy(update={"indexed": keys})
        batch.set(paths.publication(self.domain, record.sku_id), record.model_dump(mode="json"))
        return record

    def stage_unpublish(self, batch: WriteBatch, sku_id: str, previous: PublicationRecordV1 | None) -> None:
        if previous is not None:
            for key in previous.indexed:
                batch.delete(_bucket_entry(self.domain, key, sku_id))
        batch.delete(paths.publication(self.domain, sku_id))
