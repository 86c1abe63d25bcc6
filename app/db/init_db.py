from sqlalchemy.orm import Session
import structlog
from app.models.user import User, UserRole
from app.core.config import settings
from app.core.security import hash_password

logger = structlog.get_logger()


def init_db(db: Session) -> None:
    """Seed the bootstrap admin account from settings."""

    admin_email = settings.DEFAULT_ADMIN_EMAIL
    admin = db.query(User).filter(User.email == admin_email).first()
    if admin:
        logger.info("admin_user_exists", email=admin_email)
        return

    seed_password = (settings.DEFAULT_ADMIN_PASSWORD or "").strip()
    if not seed_password:
        message = (
            "Missing admin bootstrap credentials: set DEFAULT_ADMIN_PASSWORD "
            "or create an admin user manually before launch."
        )
        if settings.ENVIRONMENT == "production":
            logger.error("admin_bootstrap_missing", detail=message, env=settings.ENVIRONMENT)
            raise RuntimeError(message)
        logger.warning("admin_bootstrap_missing", detail=message, env=settings.ENVIRONMENT)
        return

    admin = User(
        name="Administrator",
        email=admin_email,
        password_hash=hash_password(seed_password),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    logger.info("admin_user_created", email=admin_email)


if __name__ == "__main__":
    from app.core.logging_config import configure_logging
    from app.db.session import SessionLocal

    configure_logging()
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
