"""Tests for RequestStore persistence and optimistic concurrency."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

from intake.core.exceptions import ConflictError, NotFoundError
from intake.db.models.customer_request import CustomerRequestRecord
from intake.domain.statuses import RequestStatus
from intake.schemas.customer_request import CustomerRequest

pytestmark = pytest.mark.integration

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def make_request(request_id: str, status=RequestStatus.DRAFT, updated_at=T0) -> CustomerRequest:
    return CustomerRequest(
        id=request_id,
        status=status,
        created_at=T0,
        updated_at=updated_at,
        client_name="Acme",
        products=[{"tyreSize": "315/80R22.5"}],
    )


async def test_insert_and_get(store):
    request = make_request("CRA260001")
    await store.insert(request)

    loaded = await store.get("CRA260001")
    assert loaded == request


async def test_get_missing_raises(store):
    with pytest.raises(NotFoundError):
        await store.get("CRA269999")


async def test_list_orders_by_updated_at_desc(store):
    await store.insert(make_request("CRA260001", updated_at=T0))
    await store.insert(make_request("CRA260002", updated_at=T0 + timedelta(hours=2)))
    await store.insert(make_request("CRA260003", updated_at=T0 + timedelta(hours=1)))

    assert [r.id for r in await store.list_all()] == ["CRA260002", "CRA260003", "CRA260001"]


async def test_list_filters_by_status(store):
    await store.insert(make_request("CRA260001"))
    await store.insert(make_request("CRA260002", status=RequestStatus.SUBMITTED))

    submitted = await store.list_all(RequestStatus.SUBMITTED)
    assert [r.id for r in submitted] == ["CRA260002"]


async def test_replace_updates_document_and_columns(store, session_factory):
    request = make_request("CRA260001")
    await store.insert(request)

    updated = request.model_copy(
        update={"status": RequestStatus.SUBMITTED, "version": 2, "updated_at": T0 + timedelta(minutes=5)}
    )
    await store.replace(updated, read_version=1)

    async with session_factory() as session:
        record = await session.scalar(select(CustomerRequestRecord).where(CustomerRequestRecord.id == "CRA260001"))
    assert record.status == "submitted"
    assert record.version == 2
    assert CustomerRequest.from_document(record.data).status == RequestStatus.SUBMITTED


async def test_replace_with_stale_version_conflicts(store):
    request = make_request("CRA260001")
    await store.insert(request)
    await store.replace(request.model_copy(update={"version": 2}), read_version=1)

    with pytest.raises(ConflictError) as exc_info:
        await store.replace(request.model_copy(update={"version": 2, "client_name": "Stale"}), read_version=1)

    assert exc_info.value.actual_version == 2
    assert (await store.get("CRA260001")).client_name == "Acme"


async def test_replace_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        await store.replace(make_request("CRA260042"), read_version=1)


async def test_delete(store):
    await store.insert(make_request("CRA260001"))
    await store.delete("CRA260001")

    with pytest.raises(NotFoundError):
        await store.get("CRA260001")
    with pytest.raises(NotFoundError):
        await store.delete("CRA260001")
