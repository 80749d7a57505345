"""Device token registration endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Response, status

from soundshare.core.dependencies import CurrentUser, DBSession
from soundshare.schemas.device import DeviceRegisterRequest, DeviceRegisterResponse, DeviceTokenRead
from soundshare.services.token_registry import TokenRegistry

router = APIRouter(prefix="/devices")


@router.post("", response_model=DeviceRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_device(
    payload: DeviceRegisterRequest,
    current_user: CurrentUser,
    session: DBSession,
) -> DeviceRegisterResponse:
    """Register (or refresh) the caller's device token."""

    record, created = await TokenRegistry(session).register(current_user.id, payload.token, payload.platform)
    return DeviceRegisterResponse(id=record.id, status="registered" if created else "updated")


@router.get("", response_model=list[DeviceTokenRead])
async def list_devices(current_user: CurrentUser, session: DBSession) -> list[DeviceTokenRead]:
    records = await TokenRegistry(session).list(current_user.id)
    return [DeviceTokenRead.model_validate(record) for record in records]


@router.delete("/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_device(token_id: str, current_user: CurrentUser, session: DBSession) -> Response:
    await TokenRegistry(session).delete(current_user.id, token_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
