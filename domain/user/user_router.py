from fastapi import APIRouter, Depends

from domain.user import user_schema
from security import get_current_user

router = APIRouter(
    prefix="/user",
    tags=["User"]
)

@router.get("/me", response_model=user_schema.User)
async def get_current_user_info(current_user = Depends(get_current_user)):
    """현재 로그인한 사용자 프로필 조회"""
    return current_user
