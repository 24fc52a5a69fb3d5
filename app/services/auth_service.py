from datetime import datetime, timedelta, timezone

import bcrypt
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from core.errors import ValidationError
from core.logging import get_logger
from core.settings import settings
from models.enums import UserRole
from models.orm_user import UserEntity

log = get_logger("auth")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(*, user_id: int, role: str) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"user_id": user_id, "role": role, "exp": exp}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise ValueError("Invalid or expired token")


def register_user(db: Session, username: str, email: str, password: str) -> UserEntity:
    """Self-service sign-up creates travelers; owners are granted through an
    approved business registration."""
    if db.query(UserEntity.id).filter(UserEntity.username == username).first():
        raise ValidationError("Username already exists", field="username")
    if db.query(UserEntity.id).filter(UserEntity.email == email).first():
        raise ValidationError("Email already exists", field="email")

    user = UserEntity(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.TRAVELER.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("user_registered", user_id=user.id, role=user.role)
    return user


def authenticate(db: Session, username: str, password: str) -> UserEntity | None:
    user = db.query(UserEntity).filter(UserEntity.username == username, UserEntity.is_active.is_(True)).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user
