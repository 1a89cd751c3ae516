import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status

from database.session import get_db
from domain.onboarding import onboarding_schema
from domain.user import user_crud, user_schema
from security import get_current_identity
from services.personalization import compile_personalized_prompt

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/onboarding",
    tags=["Onboarding"]
)

@router.post("", response_model=onboarding_schema.OnboardingResponse)
def submit_onboarding(
    payload: onboarding_schema.OnboardingRequest,
    db: Session = Depends(get_db),
    identity: user_schema.TokenData = Depends(get_current_identity)
):
    """온보딩 설문 저장 및 개인화 프롬프트 생성"""
    onboarding_data = payload.to_onboarding_data()
    personalized_prompt = compile_personalized_prompt(onboarding_data)

    try:
        user = user_crud.complete_onboarding(db, identity.id, onboarding_data, personalized_prompt)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save onboarding data for user %s", identity.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save onboarding data"
        )

    if user is None:
        logger.warning("Onboarding submitted for unknown user %s", identity.id)
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("Onboarding completed for user %s (profession=%s)", identity.id, onboarding_data["profession"])
    return onboarding_schema.OnboardingResponse(
        success=True,
        message="Onboarding completed successfully",
        personalized_prompt=personalized_prompt,
    )
