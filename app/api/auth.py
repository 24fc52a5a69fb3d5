from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user
from schemas.auth import RegisterIn, LoginIn, TokenOut, UserOut
from models.orm_user import UserEntity
from services.auth_service import authenticate, create_access_token, register_user


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201, response_model=UserOut)
def register(data: RegisterIn, db: Session = Depends(get_db)):
    return register_user(db, data.username, data.email, data.password)


@router.post("/login", response_model=TokenOut)
def login(data: LoginIn, db: Session = Depends(get_db)):
    user = authenticate(db, data.username, data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(user_id=user.id, role=user.role)
    return TokenOut(access_token=token)


@router.get("/me", response_model=UserOut)
def me(user: UserEntity = Depends(get_current_user)):
    return user
