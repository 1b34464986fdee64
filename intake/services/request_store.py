"""RequestStore: persists CustomerRequest documents with optimistic concurrency.

Every write is a single UPDATE guarded by the version that was read, so the
document, its denormalized columns and its history land together or not at
all.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake.core.exceptions import ConflictError, NotFoundError, StorageError
from intake.db.models.customer_request import CustomerRequestRecord
from intake.domain.statuses import RequestStatus
from intake.schemas.customer_request import CustomerRequest

logger = structlog.get_logger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("request_storage_failed", operation=operation, error=str(exc), error_type=type(exc).__name__)
        raise StorageError(f"Storage failure during {operation}") from exc


class RequestStore:
    """Create/read/update/delete for request documents."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def insert(self, request: CustomerRequest) -> None:
        with _storage_errors("insert"):
            async with self.session_factory() as session:
                session.add(
                    CustomerRequestRecord(
                        id=request.id,
                        data=request.to_document(),
                        status=request.status.value,
                        version=request.version,
                        created_at=request.created_at,
                        updated_at=request.updated_at,
                    )
                )
                await session.commit()

    async def get(self, request_id: str) -> CustomerRequest:
        """Load a request.

        Raises:
            NotFoundError: no request with this id
        """
        with _storage_errors("get"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(CustomerRequestRecord.data).where(CustomerRequestRecord.id == request_id)
                )
                document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError(request_id)
        return CustomerRequest.from_document(document)

    async def list_all(self, status: RequestStatus | None = None) -> list[CustomerRequest]:
        """All requests, most recently updated first."""
        query = select(CustomerRequestRecord.data).order_by(
            CustomerRequestRecord.updated_at.desc(),
            CustomerRequestRecord.id.desc(),
        )
        if status is not None:
            query = query.where(CustomerRequestRecord.status == status.value)
        with _storage_errors("list"):
            async with self.session_factory() as session:
                result = await session.execute(query)
                documents = result.scalars().all()
        return [CustomerRequest.from_document(document) for document in documents]

    async def replace(self, request: CustomerRequest, read_version: int) -> None:
        """Overwrite the stored document if it is still at ``read_version``.

        Raises:
            ConflictError: another write landed since ``read_version`` was read
            NotFoundError: the request was deleted meanwhile
        """
        with _storage_errors("replace"):
            async with self.session_factory() as session:
                result = await session.execute(
                    update(CustomerRequestRecord)
                    .where(
                        CustomerRequestRecord.id == request.id,
                        CustomerRequestRecord.version == read_version,
                    )
                    .values(
                        data=request.to_document(),
                        status=request.status.value,
                        version=request.version,
                        updated_at=request.updated_at,
                    )
                )
                if result.rowcount == 1:
                    await session.commit()
                    return
                await session.rollback()

                current = await session.execute(
                    select(CustomerRequestRecord.version).where(CustomerRequestRecord.id == request.id)
                )
                actual_version = current.scalar_one_or_none()

        if actual_version is None:
            raise NotFoundError(request.id)
        logger.warning(
            "request_update_conflict",
            request_id=request.id,
            expected_version=read_version,
            actual_version=actual_version,
        )
        raise ConflictError(request.id, read_version, actual_version)

    async def delete(self, request_id: str) -> None:
        """Raises NotFoundError if there was nothing to delete."""
        with _storage_errors("delete"):
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(CustomerRequestRecord).where(CustomerRequestRecord.id == request_id)
                )
                await session.commit()
        if result.rowcount == 0:
            raise NotFoundError(request_id)
