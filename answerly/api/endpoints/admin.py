import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import schemas
from ...auth import TokenData, create_token, require_roles
from ...config import ADMIN_PASSWORD, ADMIN_USERNAME
from ...crud import crud_answer, crud_question_set
from ...database import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=schemas.Token)
async def login_for_admin_access_token(admin_credentials: schemas.AdminLoginRequest):
    username_ok = secrets.compare_digest(admin_credentials.username, ADMIN_USERNAME)
    password_ok = secrets.compare_digest(admin_credentials.password, ADMIN_PASSWORD)
    if not (username_ok and password_ok):
        logger.warning("Failed admin login for user '%s'", admin_credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.info("Admin '%s' logged in", admin_credentials.username)
    return schemas.Token(access_token=create_token(ADMIN_USERNAME, roles=["admin"]))


@router.get("/stats", response_model=schemas.AdminStats)
async def admin_stats(
    db: AsyncSession = Depends(get_db_session),
    admin: TokenData = Depends(require_roles("admin")),
):
    return schemas.AdminStats(
        total_question_sets=await crud_question_set.count_sets(db),
        total_answers=await crud_answer.count_answers(db),
        total_owners=await crud_question_set.count_owners(db),
    )


@router.delete("/answers", response_model=schemas.MessageResponse)
async def delete_all_answers(
    db: AsyncSession = Depends(get_db_session),
    admin: TokenData = Depends(require_roles("admin")),
):
    deleted = await crud_answer.delete_all_answers(db)
    logger.warning("Admin '%s' deleted all %d answers", admin.sub, deleted)
    return schemas.MessageResponse(message=f"Deleted {deleted} answers.")
