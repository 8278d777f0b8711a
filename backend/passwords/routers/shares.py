"""API routes for password sharing.

This module exposes the share policy controller over HTTP: creating,
updating and deleting shares, reporting sharing capabilities and searching
for share partners. Errors raised by the controller are turned into JSON
responses by the application's exception handler.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import get_current_user
from ..database import get_db
from ..exceptions import HTTP_420_CONFLICT
from ..host.sqlalchemy_host import (
    SQLAlchemyAppConfig,
    SQLAlchemyGroupManager,
    SQLAlchemyShareManager,
    SQLAlchemyUserManager,
)
from ..models import User
from ..schemas import (
    ErrorResponse,
    ShareCreate,
    ShareDelete,
    ShareIdResponse,
    ShareResponse,
    ShareUpdate,
    SharingInfoResponse,
)
from ..services.password_service import PasswordService
from ..services.revision_service import PasswordRevisionService
from ..services.share_controller import SharePolicyController
from ..services.share_service import ShareService

router = APIRouter(
    prefix="/api/1.0/share",
    tags=["share"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        HTTP_420_CONFLICT: {"model": ErrorResponse},
    },
)


def get_share_controller(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> SharePolicyController:
    """Build the share controller for the current user and request session."""
    config = SQLAlchemyAppConfig(session)
    group_manager = SQLAlchemyGroupManager(session)

    return SharePolicyController(
        user_id=current_user.uid,
        config=config,
        share_manager=SQLAlchemyShareManager(config, group_manager),
        user_manager=SQLAlchemyUserManager(session),
        group_manager=group_manager,
        share_service=ShareService(session),
        password_service=PasswordService(session),
        revision_service=PasswordRevisionService(session),
    )


@router.post(
    "/create", response_model=ShareIdResponse, status_code=status.HTTP_201_CREATED
)
async def create_share(
    share_data: ShareCreate,
    controller: SharePolicyController = Depends(get_share_controller),
    session: AsyncSession = Depends(get_db),
) -> ShareIdResponse:
    """Share a password with another user."""
    share_id = await controller.create(
        password=share_data.password,
        receiver=share_data.receiver,
        share_type=share_data.type,
        expires=share_data.expires,
        editable=share_data.editable,
        shareable=share_data.shareable,
    )
    await session.commit()

    return ShareIdResponse(id=share_id)


@router.api_route("/update", methods=["PATCH", "POST"], response_model=ShareIdResponse)
async def update_share(
    share_data: ShareUpdate,
    controller: SharePolicyController = Depends(get_share_controller),
    session: AsyncSession = Depends(get_db),
) -> ShareIdResponse:
    """Change expiry and permissions of a share you own."""
    share_id = await controller.update(
        share_id=share_data.id,
        expires=share_data.expires,
        editable=share_data.editable,
        shareable=share_data.shareable,
    )
    await session.commit()

    return ShareIdResponse(id=share_id)


@router.delete("/delete", response_model=ShareIdResponse)
async def delete_share(
    share_data: ShareDelete,
    controller: SharePolicyController = Depends(get_share_controller),
    session: AsyncSession = Depends(get_db),
) -> ShareIdResponse:
    """Delete a share you own."""
    share_id = await controller.delete(share_data.id)
    await session.commit()

    return ShareIdResponse(id=share_id)


@router.get("/info", response_model=SharingInfoResponse)
async def sharing_info(
    controller: SharePolicyController = Depends(get_share_controller),
) -> SharingInfoResponse:
    """Report whether sharing and re-sharing are available."""
    return SharingInfoResponse(**await controller.info())


@router.get("/partners", response_model=Dict[str, str])
async def share_partners(
    search: str = Query("", description="Search pattern for user id or name"),
    controller: SharePolicyController = Depends(get_share_controller),
) -> Dict[str, str]:
    """Search for users to share with."""
    return await controller.partners(search)


@router.get("/list", response_model=List[ShareResponse])
async def list_shares(
    controller: SharePolicyController = Depends(get_share_controller),
) -> List[ShareResponse]:
    """List shares you own or receive."""
    shares = await controller.list_shares()
    return [ShareResponse(**await controller.share_to_dict(share)) for share in shares]


@router.get("/show", response_model=ShareResponse)
async def show_share(
    id: str = Query(..., min_length=1, description="UUID of the share"),
    controller: SharePolicyController = Depends(get_share_controller),
) -> ShareResponse:
    """Show a share you own or receive."""
    share = await controller.show(id)
    return ShareResponse(**await controller.share_to_dict(share))
