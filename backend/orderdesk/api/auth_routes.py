"""Authentication API endpoints.

    POST /api/auth/register — create the first account (becomes Admin); closed afterwards
    POST /api/auth/login    — authenticate and receive a JWT
    GET  /api/auth/me       — current user with role and permissions
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..repositories import UserRepository
from ..schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from ..services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    summary="Register the first user",
    description="Open only while no user exists. The first user becomes Admin.",
)
def register_user(body: RegisterRequest, db: Session = Depends(get_db)):
    return auth_service.register_first_user(db, body.name, body.email, body.password)


@router.post("/login", response_model=LoginResponse, summary="Authenticate and receive JWT")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.email, body.password)
    logger.info("User logged in", extra={"user_id": user.id})
    return LoginResponse(token=auth_service.issue_token(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse, summary="Get the current user")
def get_me(auth: AuthContext = Depends(require_auth), db: Session = Depends(get_db)):
    return UserRepository(db).get_by_id(auth.require_user_id())
