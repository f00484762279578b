"""
User management endpoints (super admin only).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.api.deps import get_auth_service, require_role
from agrihub.core.database import get_db
from agrihub.models.auth import User, UserRole
from agrihub.schemas.auth import SessionUser, UserCreate, UserPublic, UserUpdate
from agrihub.services.audit import AuditAction, record_audit_event
from agrihub.services.auth import AuthService

router = APIRouter()

super_admin_only = require_role(UserRole.SUPER_ADMIN)


@router.get("", response_model=List[UserPublic])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(super_admin_only),
):
    """List all users, newest first."""
    stmt = select(User).order_by(User.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(super_admin_only),
):
    """Create a user. Emails are unique."""
    try:
        new_user = await auth.create_user(
            email=user_data.email,
            password=user_data.password,
            full_name=user_data.full_name,
            role=user_data.role,
        )
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists",
        )

    await record_audit_event(
        db,
        AuditAction.USER_CREATE,
        entity_type="user",
        entity_id=new_user.id,
        new_values={
            "email": new_user.email,
            "full_name": new_user.full_name,
            "role": new_user.role,
        },
        user_id=current_user.id,
    )
    return new_user


@router.patch("/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(super_admin_only),
):
    """
    Update a user's name, role, active flag or password.

    Deactivation is the only way to remove a user. Deactivating a user or
    resetting their password revokes all of their sessions.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.id == current_user.id and user_data.is_active is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account",
        )

    old_values = {"full_name": user.full_name, "role": user.role, "is_active": user.is_active}

    if user_data.full_name is not None:
        user.full_name = user_data.full_name
    if user_data.role is not None:
        user.role = user_data.role.value
    if user_data.is_active is not None:
        user.is_active = user_data.is_active
    await db.commit()
    await db.refresh(user)

    if user_data.password is not None:
        await auth.change_password(user.id, user_data.password)
    elif user_data.is_active is False:
        await auth.revoke_user_sessions(user.id)

    await record_audit_event(
        db,
        AuditAction.USER_UPDATE,
        entity_type="user",
        entity_id=user.id,
        old_values=old_values,
        new_values=user_data.model_dump(exclude_none=True, exclude={"password"}, mode="json"),
        user_id=current_user.id,
    )
    await db.refresh(user)
    return user
