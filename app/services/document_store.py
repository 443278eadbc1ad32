from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import PartialWriteFailure, ValidationFailed, VersionConflict
from app.models.document import Document

log = logging.getLogger(__name__)


def split_path(path: str) -> tuple[str, str]:
    """
    Validate a store path and return (parent, key).
    """
    segments = path.split("/")
    if len(segments) < 2 or any(not s.strip() for s in segments):
        raise ValidationFailed(f"Invalid store path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


@dataclass(frozen=True)
class Snapshot:
    path: str
    value: Any
    version: int

    @property
    def key(self) -> str:
        return self.path.rpartition("/")[2]


@dataclass(frozen=True)
class SetOp:
    path: str
    value: Any


@dataclass(frozen=True)
class DeleteOp:
    # removes the path and every descendant
    path: str


WriteOp = Union[SetOp, DeleteOp]


class WriteBatch:
    """
    A multi-path write: tagged set/delete operations plus version expectations,
    applied together or not at all.

    A later operation on the same path replaces the earlier one.
    expect(path, 0) means the path must not exist yet.
    """

    def __init__(self) -> None:
        self._ops: dict[str, WriteOp] = {}
        self._expect: dict[str, int] = {}

    def set(self, path: str, value: Any) -> "WriteBatch":
        split_path(path)
        self._ops.pop(path, None)
        self._ops[path] = SetOp(path=path, value=value)
        return self

    def delete(self, path: str) -> "WriteBatch":
        split_path(path)
        self._ops.pop(path, None)
        self._ops[path] = DeleteOp(path=path)
        return self

    def expect(self, path: str, version: int) -> "WriteBatch":
        split_path(path)
        self._expect[path] = version
        return self

    @property
    def ops(self) -> list[WriteOp]:
        return list(self._ops.values())

    @property
    def expectations(self) -> dict[str, int]:
        return dict(self._expect)

    def __len__(self) -> int:
        return len(self._ops)


class DocumentStore:
    """
    Keyed document store over the `documents` table.

    Point reads, child listings, one batched multi-path write primitive and a
    compare-and-set used for counters. Every call runs in its own session/transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, path: str) -> Snapshot | None:
        split_path(path)
        async with self._session_factory() as db:
            row = (
                await db.execute(
                    select(Document.path, Document.value, Document.version).where(Document.path == path)
                )
            ).one_or_none()
        if row is None:
            return None
        return Snapshot(path=row.path, value=row.value, version=row.version)

    async def get_value(self, path: str, default: Any = None) -> Any:
        snap = await self.get(path)
        return default if snap is None else snap.value

    async def children(self, prefix: str) -> dict[str, Snapshot]:
        async with self._session_factory() as db:
            rows = (
                await db.execute(
                    select(Document.path, Document.value, Document.version)
                    .where(Document.parent == prefix)
                    .order_by(Document.path)
                )
            ).all()
        out: dict[str, Snapshot] = {}
        for r in rows:
            snap = Snapshot(path=r.path, value=r.value, version=r.version)
            out[snap.key] = snap
        return out

    async def apply(
        self,
        batch: WriteBatch,
        *,
        sku_id: str | None = None,
        transition: str | None = None,
    ) -> None:
        if not len(batch) and not batch.expectations:
            return

        try:
            async with self._session_factory() as db:
                async with db.begin():
                    for path, expected in batch.expectations.items():
                        current = (
                            await db.execute(
                                select(Document.version).where(Document.path == path).with_for_update()
                            )
                        ).scalar_one_or_none()
                        if (current or 0) != expected:
                            raise VersionConflict(
                                f"{path} changed concurrently (expected version {expected}, found {current or 0})",
                                sku_id=sku_id,
                                transition=transition,
                            )

                    for op in batch.ops:
                        if isinstance(op, DeleteOp):
                            await self._delete_tree(db, op.path)
                        else:
                            await self._upsert(db, op.path, op.value)
        except VersionConflict:
            raise
        except SQLAlchemyError as e:
            log.warning("batched write failed: transition=%s sku=%s ops=%d", transition, sku_id, len(batch), exc_info=True)
            raise PartialWriteFailure(
                "Batched write failed; nothing was persisted. Retry the whole operation.",
                sku_id=sku_id,
                transition=transition,
            ) from e

    async def compare_and_set(self, path: str, expected_version: int, value: Any) -> bool:
        """
        Single conditional write. expected_version=0 creates the document only if absent.
        Returns False when another writer got there first.
        """
        parent, _ = split_path(path)
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    if expected_version == 0:
                        await db.execute(insert(Document).values(path=path, parent=parent, value=value, version=1))
                        return True

                    res = await db.execute(
                        update(Document)
                        .where(Document.path == path, Document.version == expected_version)
                        .values(value=value, version=expected_version + 1)
                        .execution_options(synchronize_session=False)
                    )
                    return res.rowcount == 1
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            raise PartialWriteFailure(f"Conditional write to {path} failed") from e

    async def _upsert(self, db: AsyncSession, path: str, value: Any) -> None:
        parent, _ = split_path(path)
        res = await db.execute(
            update(Document)
            .where(Document.path == path)
            .values(value=value, version=Document.version + 1)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            await db.execute(insert(Document).values(path=path, parent=parent, value=value, version=1))

    async def _delete_tree(self, db: AsyncSession, path: str) -> None:
        await db.execute(
            delete(Document)
            .where(or_(Document.path == path, Document.path.startswith(path + "/", autoescape=True)))
            .execution_options(synchronize_session=False)
        )
