# pos_backend/routers/auth.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select

from pos_backend.auth import create_access_token, verify_password
from pos_backend.db import get_session
from pos_backend.errors import AuthError
from pos_backend.models import User
from pos_backend.schemas import LoginIn, TokenOut

logger = logging.getLogger("pos.auth")

router = APIRouter()


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, request: Request, session: Session = Depends(get_session)):
    email = payload.email.strip().lower()
    user = session.exec(select(User).where(User.email == email)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("failed login for %s", email)
        raise AuthError("Invalid credentials")
    token = create_access_token(request.app.state.settings, user.id, user.role)
    return TokenOut(token=token)
