from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import UserNotFound
from app.core.security import hash_password
from app.core.validation import RuleSet, commit_or_conflict
from app.models.invoice import Invoice
from app.models.user import User, UserRole
from app.schemas.user import RegisterRequest, UserCreate, UserUpdate
from app.services.notifier import ChangeEvent, notifier
from app.utils.ids import parse_uuid

MUTABLE_FIELDS = ("name", "email", "phone", "address", "role", "is_active")


class UserService:

    @staticmethod
    def _email_rules(db: Session, email: Optional[str], exclude_id=None, status_code: Optional[int] = None) -> RuleSet:
        return RuleSet(db, status_code=status_code).unique("email", User.email, email, exclude_id=exclude_id)

    @staticmethod
    def count_invoice_roles(db: Session, user: User) -> int:
        """Invoices naming the user in the slot its current role fills."""
        column = {UserRole.SELLER: Invoice.seller_id, UserRole.CLIENT: Invoice.client_id}.get(user.role)
        if column is None:
            return 0
        return db.query(func.count(Invoice.id)).filter(column == user.id).scalar() or 0

    @staticmethod
    def _role_change_rules(rules: RuleSet, db: Session, user: User, role: Optional[UserRole]) -> RuleSet:
        if role is None or role == user.role:
            return rules
        references = UserService.count_invoice_roles(db, user)
        if references > 0:
            rules.fail(
                "role",
                f"Cannot change role. The user is the {user.role.value} on {references} invoice(s).",
            )
        return rules

    @staticmethod
    def get_user(db: Session, user_id) -> User:
        parsed = parse_uuid(user_id)
        user = db.query(User).filter(User.id == parsed).first() if parsed else None
        if not user:
            raise UserNotFound()
        return user

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at).all()

    @staticmethod
    def list_by_role(db: Session, role: UserRole) -> List[User]:
        return db.query(User).filter(User.role == role).order_by(User.created_at).all()

    @staticmethod
    def find_with_role(db: Session, user_id, role: UserRole) -> Optional[User]:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return None
        return db.query(User).filter(User.id == parsed, User.role == role).first()

    @staticmethod
    def create_user(db: Session, data: UserCreate, actor: Optional[User] = None) -> User:
        UserService._email_rules(db, data.email).validate()

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            address=data.address,
            role=data.role,
            is_active=data.is_active,
        )
        db.add(user)
        commit_or_conflict(db, recheck=lambda: UserService._email_rules(db, data.email))
        db.refresh(user)

        notifier.notify(ChangeEvent.CREATED, user, actor)
        return user

    @staticmethod
    def register(db: Session, data: RegisterRequest, status_code: Optional[int] = None) -> User:
        """Self-service sign up; the new account is its own actor."""
        UserService._email_rules(db, data.email, status_code=status_code).validate()

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            address=data.address,
            role=data.role or UserRole.CLIENT,
            is_active=True,
        )
        db.add(user)
        commit_or_conflict(
            db,
            recheck=lambda: UserService._email_rules(db, data.email, status_code=status_code),
        )
        db.refresh(user)

        notifier.notify(ChangeEvent.CREATED, user, user)
        return user

    @staticmethod
    def update_user(db: Session, user_id, data: UserUpdate, actor: Optional[User] = None) -> User:
        user = UserService.get_user(db, user_id)
        update_data = data.model_dump(exclude_unset=True)

        rules = UserService._email_rules(db, update_data.get("email"), exclude_id=user.id)
        UserService._role_change_rules(rules, db, user, update_data.get("role")).validate()

        for field in MUTABLE_FIELDS:
            if field in update_data:
                setattr(user, field, update_data[field])
        if "password" in update_data:
            user.password_hash = hash_password(update_data["password"])

        commit_or_conflict(
            db,
            recheck=lambda: UserService._email_rules(db, update_data.get("email"), exclude_id=user.id),
        )
        db.refresh(user)

        notifier.notify(ChangeEvent.UPDATED, user, actor)
        return user

    @staticmethod
    def delete_user(db: Session, user_id, actor: Optional[User] = None) -> None:
        """Hard delete. Invoices keep their rows; the store nulls seller_id/client_id."""
        user = UserService.get_user(db, user_id)
        db.delete(user)
        commit_or_conflict(db)

        notifier.notify(ChangeEvent.DELETED, user, actor)
