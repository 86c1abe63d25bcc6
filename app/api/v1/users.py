from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserResponse, UserSummary, UserUpdate
from app.services.user_service import UserService
from app.utils.response import success

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List every user account"""
    return UserService.list_users(db)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return UserService.create_user(db, user_in, actor=current_user)


# Per-role listings are declared before /{user_id} so the literal paths win.

@router.get("/admins/list", response_model=List[UserSummary])
def list_admins(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return UserService.list_by_role(db, UserRole.ADMIN)


@router.get("/sellers/list", response_model=List[UserSummary])
def list_sellers(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return UserService.list_by_role(db, UserRole.SELLER)


@router.get("/clients/list", response_model=List[UserSummary])
def list_clients(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return UserService.list_by_role(db, UserRole.CLIENT)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return UserService.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    user_update: UserUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Partial update; omitted fields keep their stored value"""
    return UserService.update_user(db, user_id, user_update, actor=current_user)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    UserService.delete_user(db, user_id, actor=current_user)
    return success(message="User deleted successfully")
