"""Customer request API routes."""

from fastapi import APIRouter, Depends, Response

from intake.api.deps import get_request_service
from intake.domain.roles import Role
from intake.domain.statuses import RequestStatus
from intake.schemas.customer_request import CustomerRequest
from intake.schemas.request_api import (
    AllowedTransitionsResponse,
    CreateRequestBody,
    RequestMetrics,
    TransitionBody,
    UpdateFieldsBody,
)
from intake.services.request_service import RequestService

router = APIRouter()


@router.post("", response_model=CustomerRequest, status_code=201)
async def create_request(
    body: CreateRequestBody,
    service: RequestService = Depends(get_request_service),
):
    """Create a request in draft or submitted status.

    Raises:
        400: unknown, protected or malformed field
        403: actor's role may not create requests
    """
    return await service.create_request(body.fields, body.actor, body.status)


@router.get("", response_model=list[CustomerRequest])
async def list_requests(
    status: RequestStatus | None = None,
    service: RequestService = Depends(get_request_service),
):
    """All requests, most recently updated first."""
    return await service.list_requests(status)


@router.get("/{request_id}", response_model=CustomerRequest)
async def get_request(
    request_id: str,
    service: RequestService = Depends(get_request_service),
):
    return await service.get_request(request_id)


@router.put("/{request_id}", response_model=CustomerRequest)
async def update_request_fields(
    request_id: str,
    body: UpdateFieldsBody,
    service: RequestService = Depends(get_request_service),
):
    """Merge fields into a request. Status and history are never changed here.

    Raises:
        400: unknown, protected or malformed field
        403: actor's role may not edit these fields now
        404: request not found
        409: expectedVersion does not match
    """
    return await service.update_request_fields(request_id, body.fields, body.actor, body.expected_version)


@router.post("/{request_id}/status", response_model=CustomerRequest)
async def apply_transition(
    request_id: str,
    body: TransitionBody,
    service: RequestService = Depends(get_request_service),
):
    """Move a request to a new status, recording one history entry.

    Raises:
        400: illegal transition or missing accompanying data
        403: actor's role may not enter this status
        404: request not found
        409: expectedVersion does not match, or a concurrent write won
    """
    return await service.apply_transition(
        request_id,
        body.status,
        body.actor,
        comment=body.comment,
        fields=body.fields,
        expected_version=body.expected_version,
    )


@router.get("/{request_id}/transitions", response_model=AllowedTransitionsResponse)
async def allowed_transitions(
    request_id: str,
    role: Role | None = None,
    service: RequestService = Depends(get_request_service),
):
    return await service.allowed_transitions(request_id, role)


@router.get("/{request_id}/metrics", response_model=RequestMetrics)
async def request_metrics(
    request_id: str,
    service: RequestService = Depends(get_request_service),
):
    return await service.request_metrics(request_id)


@router.delete("/{request_id}", status_code=204)
async def delete_request(
    request_id: str,
    service: RequestService = Depends(get_request_service),
):
    await service.delete_request(request_id)
    return Response(status_code=204)
