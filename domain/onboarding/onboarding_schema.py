from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from services.personalization import calculate_age

def _join(value: Union[List[str], str, None]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        joined = ", ".join(item.strip() for item in value if item and item.strip())
        return joined or None
    return value.strip() or None

def _compact(value: Optional[float]):
    """70.0 -> 70 (프롬프트 문장에 소수점이 붙지 않도록)"""
    if value is not None and float(value).is_integer():
        return int(value)
    return value

class OnboardingRequest(BaseModel):
    """다단계 온보딩 설문 (camelCase/snake_case 모두 허용)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date_of_birth: date
    profession: Literal["medico", "non-medico"]

    # 의료인 분기
    usage: Optional[Literal["practice", "personal"]] = None
    specialty: Optional[str] = None
    experience_years: Optional[int] = Field(default=None, ge=0, le=80)

    # 건강/생활 분기
    gender: Optional[str] = None
    height: Optional[float] = Field(default=None, gt=0, le=300)  # cm
    height_feet: Optional[int] = Field(default=None, ge=0, le=9)
    height_inches: Optional[int] = Field(default=None, ge=0, le=11)
    weight: Optional[float] = Field(default=None, gt=0, le=500)  # kg
    habits: Union[List[str], str, None] = None
    meals_per_day: Optional[int] = Field(default=None, ge=1, le=12)
    water_intake: Optional[int] = Field(default=None, ge=0, le=40)  # 잔/일
    exercise_routine: Union[List[str], str, None] = None
    sleep_hours: Optional[float] = Field(default=None, ge=0, le=24)
    stress_level: Optional[str] = None
    diet_type: Optional[str] = None
    medical_conditions: Union[List[str], str, None] = None

    @property
    def is_practice(self) -> bool:
        return self.profession == "medico" and self.usage == "practice"

    def height_cm(self) -> Optional[float]:
        if self.height_feet is not None and self.height_inches is not None:
            return round((self.height_feet * 12 + self.height_inches) * 2.54)
        return _compact(self.height)

    @model_validator(mode="after")
    def check_branch_fields(self):
        if self.date_of_birth > date.today():
            raise ValueError("dateOfBirth cannot be in the future")
        if self.profession == "medico" and self.usage is None:
            raise ValueError("usage is required for medical professionals")

        if self.is_practice:
            missing = [name for name in ("specialty", "experience_years") if getattr(self, name) is None]
        else:
            # 신체 정보는 일반 사용자만 필수 (의료인 개인 용도는 선택)
            required = ("gender", "weight") if self.profession == "non-medico" else ()
            required += ("meals_per_day", "water_intake", "diet_type")
            missing = [name for name in required if getattr(self, name) is None]
            if self.profession == "non-medico" and self.height_cm() is None:
                missing.append("height")
        if missing:
            raise ValueError(f"Missing required onboarding fields: {', '.join(missing)}")
        return self

    def to_onboarding_data(self, today: Optional[date] = None) -> Dict[str, Any]:
        """선택한 분기의 필드만 담은 저장용 문서"""
        data: Dict[str, Any] = {
            "date_of_birth": self.date_of_birth.isoformat(),
            "age": calculate_age(self.date_of_birth, today),
            "profession": self.profession,
        }
        if self.profession == "medico":
            data["usage"] = self.usage
        if self.is_practice:
            data["specialty"] = self.specialty
            data["experience_years"] = self.experience_years
            return data

        branch = {
            "gender": self.gender,
            "height": self.height_cm(),
            "weight": _compact(self.weight),
            "habits": _join(self.habits),
            "meals_per_day": self.meals_per_day,
            "water_intake": self.water_intake,
            "exercise_routine": _join(self.exercise_routine),
            "sleep_hours": _compact(self.sleep_hours),
            "stress_level": self.stress_level,
            "diet_type": self.diet_type,
            "medical_conditions": _join(self.medical_conditions),
        }
        data.update({key: value for key, value in branch.items() if value is not None})
        return data

class OnboardingResponse(BaseModel):
    success: bool
    message: str
    personalized_prompt: str
