from datetime import date
from typing import Any, Mapping, Optional


def calculate_bmi(height_cm: float, weight_kg: float) -> float:
    height_m = height_cm / 100
    return weight_kg / (height_m ** 2)


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    return today.year - date_of_birth.year - ((today.month, today.day) < (date_of_birth.month, date_of_birth.day))


def _profession_descriptor(data: Mapping[str, Any]) -> str:
    if data.get("profession") == "medico":
        if data.get("usage") == "practice":
            return (
                f"medical professional specializing in {data.get('specialty')} "
                f"with {data.get('experience_years')} years of experience. "
            )
        return "medical professional using the system for personal health management. "
    return "individual seeking healthcare guidance. "


def compile_personalized_prompt(data: Optional[Mapping[str, Any]]) -> str:
    """온보딩 데이터를 시스템 프롬프트용 사용자 프로필 문장으로 변환

    값이 없는 항목은 건너뛴다. 같은 입력이면 항상 같은 문자열을 돌려준다.
    """
    if not data:
        return ""

    prompt = f"User Profile: {data.get('age')}-year-old "
    prompt += _profession_descriptor(data)

    if data.get("gender"):
        prompt += f"Gender: {data['gender']}. "

    if data.get("height") and data.get("weight"):
        bmi = calculate_bmi(data["height"], data["weight"])
        prompt += f"Physical stats: {data['height']}cm, {data['weight']}kg (BMI: {bmi:.1f}). "

    if data.get("habits"):
        prompt += f"Lifestyle habits: {data['habits']}. "

    if data.get("meals_per_day"):
        prompt += f"Eats {data['meals_per_day']} meals per day. "

    if data.get("water_intake") is not None:
        prompt += f"Drinks {data['water_intake']} glasses of water daily. "

    if data.get("exercise_routine"):
        prompt += f"Exercise routine: {data['exercise_routine']}. "

    if data.get("sleep_hours") is not None:
        prompt += f"Sleeps {data['sleep_hours']} hours per night. "

    if data.get("stress_level"):
        prompt += f"Stress level: {data['stress_level']}. "

    if data.get("diet_type"):
        prompt += f"Diet: {data['diet_type']}. "

    if data.get("medical_conditions"):
        prompt += f"Medical conditions: {data['medical_conditions']}. "

    prompt += "Please provide personalized healthcare advice considering this profile."
    return prompt
