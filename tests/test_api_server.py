# tests/test_api_server.py

import pytest
from fastapi.testclient import TestClient

from lecture_quiz.core.services.quiz_store import QuizStore
from lecture_quiz.server.api_server import create_api_app

QUESTION = {
    "text": "What does **TCP** stand for?",
    "options": [
        "Transmission Control Protocol",
        "Transfer Control Program",
        "Tiered Control Protocol",
        "Transport Channel Protocol",
    ],
    "correctAnswer": "Transmission Control Protocol",
    "explanation": "It is the Transmission Control Protocol.",
}


@pytest.fixture
def client():
    return TestClient(create_api_app(QuizStore()))


def create_quiz(client, **overrides):
    payload = {"title": "Week 3", "description": "Transport layer", "timeLimit": 10, "isActive": True}
    payload.update(overrides)
    response = client.post("/api/quizzes", json=payload)
    assert response.status_code == 201
    return response.json()


def submission_payload(quiz_id, **overrides):
    payload = {
        "quizId": quiz_id,
        "studentName": "Sita Sharma",
        "studentEmail": "sita@example.com",
        "rollNumber": "077BCT045",
        "faculty": "BCT",
        "year": "2077",
        "score": 1,
        "totalQuestions": 1,
        "isCheated": False,
        "submissionType": "manual",
    }
    payload.update(overrides)
    return payload


def test_subject_lifecycle(client):
    created = client.post("/api/subjects", json={"name": "Networks"}).json()
    quiz = create_quiz(client, subjectId=created["id"])

    assert client.post("/api/subjects", json={"name": "networks"}).status_code == 400

    renamed = client.put(f"/api/subjects/{created['id']}", json={"name": "Computer Networks"})
    assert renamed.json()["name"] == "Computer Networks"

    assert client.delete(f"/api/subjects/{created['id']}").status_code == 200
    assert client.get(f"/api/quizzes/{quiz['id']}").json()["subjectId"] is None
    assert client.delete(f"/api/subjects/{created['id']}").status_code == 404


def test_quiz_crud(client):
    quiz = create_quiz(client)
    assert quiz["timeLimit"] == 10
    assert quiz["questions"] == []

    listing = client.get("/api/quizzes").json()
    assert listing[0]["id"] == quiz["id"]
    assert listing[0]["questionCount"] == 0

    updated = client.put(f"/api/quizzes/{quiz['id']}", json={"isActive": False, "timeLimit": 0})
    body = updated.json()
    assert body["isActive"] is False
    assert body["timeLimit"] is None
    assert body["title"] == "Week 3"

    assert client.delete(f"/api/quizzes/{quiz['id']}").status_code == 200
    assert client.get(f"/api/quizzes/{quiz['id']}").status_code == 404


def test_quiz_listing_filters_by_subject(client):
    subject = client.post("/api/subjects", json={"name": "Networks"}).json()
    create_quiz(client, title="Loose")
    filed = create_quiz(client, title="Filed", subjectId=subject["id"])

    listing = client.get("/api/quizzes", params={"subjectId": subject["id"]}).json()
    assert [quiz["id"] for quiz in listing] == [filed["id"]]


def test_question_endpoints(client):
    quiz = create_quiz(client)

    response = client.post(f"/api/quizzes/{quiz['id']}/questions", json=QUESTION)
    assert response.status_code == 201
    question = response.json()
    assert "<strong>TCP</strong>" in question["textHtml"]

    second = client.post(
        f"/api/quizzes/{quiz['id']}/questions", json={**QUESTION, "text": "Second?"}
    ).json()
    reordered = client.put(f"/api/questions/{second['id']}/reorder", json={"direction": "up"})
    assert [q["text"] for q in reordered.json()] == ["Second?", QUESTION["text"]]

    edited = client.put(f"/api/questions/{question['id']}", json={**QUESTION, "text": "Edited?"})
    assert edited.json()["text"] == "Edited?"

    assert client.delete(f"/api/questions/{question['id']}").status_code == 200
    assert len(client.get(f"/api/quizzes/{quiz['id']}").json()["questions"]) == 1


def test_invalid_question_rejected(client):
    quiz = create_quiz(client)

    bad_answer = client.post(
        f"/api/quizzes/{quiz['id']}/questions", json={**QUESTION, "correctAnswer": "UDP"}
    )
    assert bad_answer.status_code == 400
    assert client.post("/api/quizzes/999/questions", json=QUESTION).status_code == 404
    assert (
        client.put("/api/questions/1/reorder", json={"direction": "sideways"}).status_code == 422
    )


def test_submissions_and_summary(client):
    quiz = create_quiz(client)
    client.post(f"/api/quizzes/{quiz['id']}/questions", json=QUESTION)

    first = client.post("/api/submissions", json=submission_payload(quiz["id"]))
    assert first.status_code == 201
    assert first.json()["quizTitle"] == "Week 3"

    client.post(
        "/api/submissions",
        json=submission_payload(
            quiz["id"], faculty="BEI", score=0, isCheated=True, submissionType="blur"
        ),
    )

    everything = client.get("/api/submissions").json()
    assert len(everything) == 2
    assert everything[0]["submissionType"] == "blur"

    filtered = client.get(
        "/api/submissions", params={"quizId": quiz["id"], "faculty": "BCT", "year": "all"}
    ).json()
    assert [s["faculty"] for s in filtered] == ["BCT"]

    summary = client.get(f"/api/quizzes/{quiz['id']}/summary").json()
    assert summary["submissionCount"] == 2
    assert summary["cheatedCount"] == 1
    assert summary["averagePercentage"] == 50.0
    assert summary["typeCounts"] == {"manual": 1, "timeout": 0, "blur": 1}


def test_submission_validation(client):
    quiz = create_quiz(client)

    missing = client.post("/api/submissions", json=submission_payload(quiz["id"], rollNumber=""))
    assert missing.status_code == 400
    unknown = client.post("/api/submissions", json=submission_payload(999))
    assert unknown.status_code == 404
    bad_type = client.post(
        "/api/submissions", json=submission_payload(quiz["id"], submissionType="late")
    )
    assert bad_type.status_code == 422


def test_import_and_export(client):
    text = (
        "TITLE: Imported\nTIMELIMIT: 2\n\n"
        "Q: Pick B\nA: one\nB: two\nC: three\nD: four\nCORRECT: B\nEXPLANATION: It says B.\n"
    )

    response = client.post("/api/quizzes/import", json={"text": text, "isActive": True})
    assert response.status_code == 201
    quiz = response.json()
    assert quiz["title"] == "Imported"
    assert quiz["timeLimit"] == 2
    assert quiz["questions"][0]["correctAnswer"] == "two"

    exported = client.get(f"/api/quizzes/{quiz['id']}/export")
    assert exported.status_code == 200
    assert "CORRECT: B" in exported.text

    assert client.post("/api/quizzes/import", json={"text": "nonsense"}).status_code == 400
    assert client.get("/api/quizzes/999/export").status_code == 404
