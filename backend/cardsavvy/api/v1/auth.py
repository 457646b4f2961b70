"""Session login for the admin back-office."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cardsavvy.db.session import get_db
from cardsavvy.models.catalog import User
from cardsavvy.schemas.catalog import LoginRequest, UserRead
from cardsavvy.services.auth import authenticate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=UserRead)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, credentials.username_or_email, credentials.password)
    if user is None:
        return JSONResponse(
            status_code=401,
            content={"status": "error", "code": 401, "message": "Invalid credentials"},
        )

    request.session["user_id"] = user.id
    request.session["is_admin"] = user.is_admin
    logger.info(f"User '{user.username}' logged in")
    return user


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserRead)
async def me(request: Request, db: AsyncSession = Depends(get_db)):
    user_id = request.session.get("user_id")
    if not user_id:
        return JSONResponse(
            status_code=401,
            content={"status": "error", "code": 401, "message": "Not authenticated"},
        )

    user = await db.get(User, user_id)
    if user is None:
        return JSONResponse(
            status_code=404,
            content={"status": "error", "code": 404, "message": "User not found"},
        )
    return user
