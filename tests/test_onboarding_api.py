from __future__ import annotations

from domain.chat import chat_crud
from domain.user import user_crud

PAYLOAD = {
    "dateOfBirth": "1990-03-15",
    "profession": "non-medico",
    "gender": "female",
    "heightFeet": 5,
    "heightInches": 7,
    "weight": 70,
    "habits": ["early riser"],
    "mealsPerDay": 3,
    "waterIntake": 8,
    "exerciseRoutine": ["yoga"],
    "dietType": "vegetarian",
}


def test_onboarding_requires_authentication(client):
    assert client.post("/api/onboarding", json=PAYLOAD).status_code == 401


def test_onboarding_for_unknown_user_is_not_found(client, auth_headers):
    response = client.post("/api/onboarding", headers=auth_headers("nobody"), json=PAYLOAD)
    assert response.status_code == 404


def test_onboarding_completes_profile(client, auth_headers, create_user, db):
    create_user("user-a")

    response = client.post("/api/onboarding", headers=auth_headers("user-a"), json=PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "(BMI: 24.2)" in body["personalized_prompt"]

    db.expire_all()
    user = user_crud.get_user_by_google_id(db, "user-a")
    assert user.onboarding_completed is True
    assert user.personalized_prompt == body["personalized_prompt"]
    assert user.onboarding_data["height"] == 170
    assert user.onboarding_data["habits"] == "early riser"
    assert "specialty" not in user.onboarding_data


def test_repeat_submission_overwrites(client, auth_headers, create_user, db):
    create_user("doc-1")
    headers = auth_headers("doc-1")
    client.post("/api/onboarding", headers=headers, json=PAYLOAD)

    practice = {
        "dateOfBirth": "1980-01-01",
        "profession": "medico",
        "usage": "practice",
        "specialty": "Dermatology",
        "experienceYears": 8,
    }
    assert client.post("/api/onboarding", headers=headers, json=practice).status_code == 200

    db.expire_all()
    user = user_crud.get_user_by_google_id(db, "doc-1")
    assert user.onboarding_data["specialty"] == "Dermatology"
    assert "gender" not in user.onboarding_data
    assert "specializing in Dermatology with 8 years of experience" in user.personalized_prompt
    assert user_crud.is_medical_professional(user)


def test_invalid_branch_is_rejected_without_changes(client, auth_headers, create_user, db):
    create_user("user-a")
    response = client.post(
        "/api/onboarding",
        headers=auth_headers("user-a"),
        json={"dateOfBirth": "1990-03-15", "profession": "medico", "usage": "practice"},
    )

    assert response.status_code == 422
    db.expire_all()
    assert user_crud.get_user_by_google_id(db, "user-a").onboarding_completed is False


def test_onboarded_profile_personalizes_chat(client, auth_headers, create_user, fake_completion, db):
    create_user("user-a")
    headers = auth_headers("user-a")
    client.post("/api/onboarding", headers=headers, json=PAYLOAD)

    client.post("/api/chat", headers=headers, json={"message": "Any tips for better sleep at night?", "agent": "normal"})

    system_prompt = fake_completion.calls[0][0]["content"]
    assert "User Context: User Profile:" in system_prompt
    assert "(BMI: 24.2)" in system_prompt
    assert chat_crud.count_messages(db, "user-a") == 1


def test_personal_use_medico_without_physical_stats(client, auth_headers, create_user, db):
    create_user("doc-2")
    body = {
        "dateOfBirth": "1980-05-01",
        "profession": "medico",
        "usage": "personal",
        "mealsPerDay": 3,
        "waterIntake": 8,
        "dietType": "vegetarian",
    }

    response = client.post("/api/onboarding", headers=auth_headers("doc-2"), json=body)

    assert response.status_code == 200
    prompt = response.json()["personalized_prompt"]
    assert "medical professional using the system for personal health management" in prompt
    assert "Physical stats" not in prompt
    assert "Drinks 8 glasses of water daily." in prompt

    db.expire_all()
    assert user_crud.get_user_by_google_id(db, "doc-2").onboarding_completed is True
