from datetime import datetime, timezone

import pytest


@pytest.fixture
def question(fake_db):
    fake_db.seed("questions/q1", {
        "title": "How do I center a div?",
        "description": "flexbox?",
        "visibility": "public",
        "status": "open",
        "authorUid": "author1",
        "authorDisplay": "sam",
        "seed": 2,
        "voters": {},
        "votes": 2,
        "answersCount": 0,
        "views": 0,
    })
    return "q1"


def test_create_question_as_member_ignores_admin_fields(client, fake_db, login, member):
    login(member)
    response = client.post("/api/v1/questions/", json={
        "title": "  What is a closure?  ",
        "description": "In JavaScript",
        "tags": "js, functions",
        "seed": 50,
        "views": 1000,
        "status": "closed",
        "authorDisplay": "Famous Person",
    })

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "What is a closure?"
    assert data["votes"] == 0
    assert data["status"] == "open"
    assert data["authorDisplay"] == "Ada"

    stored = fake_db.docs[f"questions/{data['id']}"]
    assert stored["seed"] == 0 and stored["voters"] == {} and stored["votes"] == 0
    assert stored["views"] == 0
    assert stored["tags"] == ["js", "functions"]
    assert stored["title_lc"] == "what is a closure?"
    assert set(stored["searchTokens"]) == {"what", "is", "closure", "in", "javascript", "js",
                                           "functions"}


def test_create_question_as_admin_seeds_votes(client, fake_db, login, admin):
    login(admin)
    response = client.post("/api/v1/questions/", json={
        "title": "Seeded", "seed": 7, "views": 30, "status": "answered", "authorDisplay": "Mod",
    })

    assert response.status_code == 201
    data = response.json()
    assert (data["votes"], data["seed"], data["views"]) == (7, 7, 30)
    assert data["status"] == "answered"
    assert data["authorDisplay"] == "Mod"


def test_create_question_requires_auth(client, fake_db):
    assert client.post("/api/v1/questions/", json={"title": "x"}).status_code == 401


def test_vote_toggle_roundtrip(client, fake_db, login, member, question):
    login(member)

    first = client.post(f"/api/v1/questions/{question}/vote")
    assert first.status_code == 200
    assert first.json() == {"total": 3, "seed": 2, "votersCount": 1, "hasVoted": True}

    second = client.post(f"/api/v1/questions/{question}/vote")
    assert second.json() == {"total": 2, "seed": 2, "votersCount": 0, "hasVoted": False}
    assert fake_db.docs["questions/q1"]["votes"] == 2


def test_vote_on_missing_question(client, fake_db, login, member):
    login(member)
    assert client.post("/api/v1/questions/ghost/vote").status_code == 404


def test_seed_routes_require_admin(client, fake_db, login, member, question):
    login(member)
    assert client.put(f"/api/v1/questions/{question}/seed", json={"seed": 9}).status_code == 403
    assert client.delete(f"/api/v1/questions/{question}/voters").status_code == 403
    assert client.delete(f"/api/v1/questions/{question}/seed").status_code == 403
    assert fake_db.docs["questions/q1"]["seed"] == 2


def test_admin_seed_routes(client, fake_db, login, admin, question):
    fake_db.docs["questions/q1"]["voters"] = {"x": True}
    login(admin)

    response = client.put(f"/api/v1/questions/{question}/seed", json={"seed": 10})
    assert response.json()["total"] == 11

    response = client.delete(f"/api/v1/questions/{question}/voters")
    assert response.json() == {"total": 10, "seed": 10, "votersCount": 0, "hasVoted": None}

    response = client.delete(f"/api/v1/questions/{question}/seed")
    assert response.json()["total"] == 0

    assert client.put(f"/api/v1/questions/{question}/seed", json={"seed": -1}).status_code == 422


def test_post_answer_and_vote(client, fake_db, login, member, question):
    login(member)
    response = client.post(f"/api/v1/questions/{question}/answers", json={"content": " Use grid "})

    assert response.status_code == 201
    answer = response.json()
    assert answer["content"] == "Use grid"
    assert answer["votes"] == 0
    assert fake_db.docs["questions/q1"]["answersCount"] == 1
    assert fake_db.docs["questions/q1"]["lastActivityAt"] is not None

    response = client.post(f"/api/v1/questions/{question}/answers/{answer['id']}/vote")
    assert response.json()["total"] == 1


def test_post_answer_validation(client, fake_db, login, member, question):
    login(member)
    assert client.post(f"/api/v1/questions/{question}/answers", json={"content": "  "}).status_code == 422
    assert client.post("/api/v1/questions/ghost/answers", json={"content": "hi"}).status_code == 404


def test_answer_admin_seed(client, fake_db, login, admin, question):
    fake_db.seed("questions/q1/answers/a1", {"content": "x", "seed": 0, "voters": {"u": True}})
    login(admin)

    assert client.put("/api/v1/questions/q1/answers/a1/seed", json={"seed": 4}).json()["total"] == 5
    assert client.delete("/api/v1/questions/q1/answers/a1/voters").json()["total"] == 4
    assert client.delete("/api/v1/questions/q1/answers/a1/seed").json()["total"] == 0


def test_get_question_orders_answers(client, fake_db, login, member, question):
    t = lambda minute: datetime(2025, 1, 1, 12, minute, tzinfo=timezone.utc)
    fake_db.seed("questions/q1/answers/a1", {"content": "old", "voters": {}, "createdAt": t(1)})
    fake_db.seed("questions/q1/answers/a2", {"content": "popular", "seed": 5, "createdAt": t(2)})
    fake_db.seed("questions/q1/answers/a3", {"content": "accepted", "isAccepted": True,
                                             "createdAt": t(3)})
    fake_db.seed("questions/q1/answers/a4", {"content": "mine", "voters": {"u1": True},
                                             "createdAt": t(4)})
    login(member)

    response = client.get("/api/v1/questions/q1")

    assert response.status_code == 200
    body = response.json()
    assert body["question"]["votes"] == 2
    assert [a["id"] for a in body["answers"]] == ["a3", "a2", "a4", "a1"]
    assert [a["hasVoted"] for a in body["answers"]] == [False, False, True, False]


def test_draft_question_hidden_from_others(client, fake_db, login, member, question):
    fake_db.docs["questions/q1"]["visibility"] = "draft"

    assert client.get("/api/v1/questions/q1").status_code == 404
    login(member)
    assert client.get("/api/v1/questions/q1").status_code == 404


def test_record_view(client, fake_db, question):
    assert client.post(f"/api/v1/questions/{question}/views").status_code == 204
    assert client.post(f"/api/v1/questions/{question}/views").status_code == 204
    assert fake_db.docs["questions/q1"]["views"] == 2
    assert client.post("/api/v1/questions/ghost/views").status_code == 404


def test_question_tags_lowercased_and_capped(client, fake_db, login, member):
    login(member)
    response = client.post("/api/v1/questions/", json={
        "title": "Scope", "tags": "JS, Closures, Scope, Hoisting",
    })

    assert response.json()["tags"] == ["js", "closures", "scope"]


# --- drafts ---

@pytest.fixture
def draft_question(fake_db, question):
    fake_db.docs["questions/q1"]["visibility"] = "draft"
    fake_db.seed("questions/q1/answers/a1", {"content": "x", "seed": 0, "voters": {}, "votes": 0})
    return question


def test_draft_question_rejects_writes_from_others(
    client, fake_db, login, member, draft_question
):
    login(member)

    assert client.post("/api/v1/questions/q1/vote").status_code == 404
    assert client.post("/api/v1/questions/q1/answers", json={"content": "hi"}).status_code == 404
    assert client.post("/api/v1/questions/q1/answers/a1/vote").status_code == 404
    assert client.post("/api/v1/questions/q1/views").status_code == 404

    doc = fake_db.docs["questions/q1"]
    assert (doc["voters"], doc["votes"], doc["answersCount"], doc["views"]) == ({}, 2, 0, 0)
    assert fake_db.docs["questions/q1/answers/a1"]["voters"] == {}
    assert [p for p in fake_db.docs if p.startswith("questions/q1/answers/")] == [
        "questions/q1/answers/a1"
    ]


def test_draft_question_writable_by_author_and_admin(
    client, fake_db, login, admin, draft_question
):
    from devdeakin.models.user import CurrentUser

    login(CurrentUser(uid="author1"))
    assert client.post("/api/v1/questions/q1/vote").json()["total"] == 3

    login(admin)
    assert client.post("/api/v1/questions/q1/answers/a1/vote").json()["total"] == 1


# --- admin seeding ---

def test_admin_seed_answers(client, fake_db, login, admin):
    login(admin)
    response = client.post("/api/v1/questions/", json={
        "title": "Seeded Q",
        "authorDisplay": "Mod",
        "seedAnswers": [
            {"content": "First", "seed": 2, "isAccepted": True, "authorDisplay": "Sam"},
            {"content": "Second", "seed": 9, "isAccepted": True},
            {"content": "Third"},
        ],
    })

    assert response.status_code == 201
    question = response.json()
    assert question["status"] == "answered"
    assert question["answersCount"] == 3

    prefix = f"questions/{question['id']}/answers/"
    answers = {d["content"]: d for p, d in fake_db.docs.items() if p.startswith(prefix)}
    assert [answers[c]["isAccepted"] for c in ("First", "Second", "Third")] == [True, False, False]
    assert (answers["First"]["seed"], answers["First"]["votes"]) == (2, 2)
    assert answers["First"]["voters"] == {}
    assert answers["First"]["authorDisplay"] == "Sam"
    assert answers["Second"]["authorDisplay"] == "Mod"

    detail = client.get(f"/api/v1/questions/{question['id']}").json()
    assert [a["content"] for a in detail["answers"]] == ["First", "Second", "Third"]


def test_admin_seed_answers_text_format(client, fake_db, login, admin):
    login(admin)
    raw = "Use grid || votes=4\n---\nUse flexbox || author=Lee || accepted\nx\n"
    question = client.post("/api/v1/questions/", json={"title": "Q", "seedAnswers": raw}).json()

    prefix = f"questions/{question['id']}/answers/"
    answers = sorted(
        (d["content"], d["seed"], d["authorDisplay"], d["isAccepted"])
        for p, d in fake_db.docs.items() if p.startswith(prefix)
    )
    assert answers == [("Use flexbox", 0, "Lee", True), ("Use grid", 4, "Admin", False)]
    assert question["status"] == "answered"


def test_seed_answers_capped(client, fake_db, login, admin):
    login(admin)
    seeds = [{"content": f"answer {i}"} for i in range(25)]
    question = client.post("/api/v1/questions/", json={"title": "Q", "seedAnswers": seeds}).json()
    assert question["answersCount"] == 20


def test_member_seed_answers_ignored(client, fake_db, login, member):
    login(member)
    question = client.post("/api/v1/questions/", json={
        "title": "Q", "seedAnswers": [{"content": "planted", "isAccepted": True}],
    }).json()

    assert question["status"] == "open"
    assert question["answersCount"] == 0
    assert not [p for p in fake_db.docs if p.startswith(f"questions/{question['id']}/")]


# --- deletion ---

def test_admin_deletes_question_with_answers(
    client, fake_db, login, admin, member, question
):
    fake_db.seed("questions/q1/answers/a1", {"content": "x"})
    fake_db.seed("questions/q1/answers/a2", {"content": "y"})
    fake_db.seed("questions/q2", {"title": "other"})

    login(member)
    assert client.delete("/api/v1/questions/q1").status_code == 403

    login(admin)
    assert client.delete("/api/v1/questions/q1").status_code == 204
    assert not [p for p in fake_db.docs if p.startswith("questions/q1")]
    assert "questions/q2" in fake_db.docs
    assert client.delete("/api/v1/questions/q1").status_code == 404
