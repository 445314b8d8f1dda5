from __future__ import annotations

from fastapi.testclient import TestClient

from mindconnect.core.config import settings

TEST_USER_ID = "00000000-0000-4000-8000-000000000001"


# ── Journal ────────────────────────────────────────────────────────────────────

def test_create_journal_entry(authenticated_client: TestClient, supabase_mock) -> None:
    supabase_mock["insert_one"].return_value = {
        "id": "j-1",
        "user_id": TEST_USER_ID,
        "content": "Felt calmer after the walk.",
        "prompt": "What helped today?",
        "created_at": "2026-02-15T20:00:00+00:00",
    }

    response = authenticated_client.post(
        "/api/journal",
        json={"content": "Felt calmer after the walk.", "prompt": "What helped today?"},
    )

    assert response.status_code == 200
    assert response.json()["prompt"] == "What helped today?"
    row = supabase_mock["insert_one"].await_args.kwargs["row"]
    assert row["user_id"] == TEST_USER_ID


def test_journal_list_takes_ten_most_recent(
    authenticated_client: TestClient, supabase_mock
) -> None:
    supabase_mock["select"].return_value = []

    response = authenticated_client.get("/api/journal")

    assert response.status_code == 200
    assert response.json() == []
    params = supabase_mock["select"].await_args.kwargs["params"]
    assert params["limit"] == 10
    assert params["order"] == "created_at.desc"
    assert params["user_id"] == f"eq.{TEST_USER_ID}"


def test_journal_rejects_empty_content(authenticated_client: TestClient, supabase_mock) -> None:
    response = authenticated_client.post("/api/journal", json={"content": ""})
    assert response.status_code == 422


# ── Gratitude ──────────────────────────────────────────────────────────────────

def test_post_gratitude_starts_with_zero_likes(
    authenticated_client: TestClient, supabase_mock
) -> None:
    supabase_mock["insert_one"].return_value = {
        "id": "g-1",
        "user_id": TEST_USER_ID,
        "message": "Thankful for my roommate",
        "likes": 0,
    }

    response = authenticated_client.post(
        "/api/gratitude", json={"message": "Thankful for my roommate"}
    )

    assert response.status_code == 200
    assert supabase_mock["insert_one"].await_args.kwargs["row"]["likes"] == 0


def test_gratitude_wall_takes_twenty_posts_from_everyone(
    authenticated_client: TestClient, supabase_mock
) -> None:
    response = authenticated_client.get("/api/gratitude")

    assert response.status_code == 200
    params = supabase_mock["select"].await_args.kwargs["params"]
    assert params["limit"] == 20
    assert "user_id" not in params


def test_like_gratitude_increments_likes(
    authenticated_client: TestClient, supabase_mock
) -> None:
    supabase_mock["select"].return_value = [{"id": "g-1", "likes": 4}]
    supabase_mock["patch"].return_value = [
        {"id": "g-1", "user_id": "someone-else", "message": "Sunny day", "likes": 5}
    ]

    response = authenticated_client.post("/api/gratitude/g-1/like")

    assert response.status_code == 200
    assert response.json()["likes"] == 5
    call = supabase_mock["patch"].await_args.kwargs
    assert call["payload"] == {"likes": 5}
    assert call["params"]["id"] == "eq.g-1"
    assert call["bearer_token"] == settings.supabase_service_role_key


def test_like_missing_gratitude_returns_404(
    authenticated_client: TestClient, supabase_mock
) -> None:
    supabase_mock["select"].return_value = []

    response = authenticated_client.post("/api/gratitude/missing/like")

    assert response.status_code == 404
    assert response.json()["detail"] == "Post not found"
    assert supabase_mock["patch"].await_count == 0


# ── Counselor ──────────────────────────────────────────────────────────────────

def test_request_appointment_is_pending(
    authenticated_client: TestClient, supabase_mock
) -> None:
    supabase_mock["insert_one"].return_value = {
        "id": "c-1",
        "user_id": TEST_USER_ID,
        "preferred_time": "Tuesday afternoon",
        "reason": "Exam anxiety",
        "is_anonymous": True,
        "status": "pending",
    }

    response = authenticated_client.post(
        "/api/counselor/requests",
        json={
            "preferred_time": "Tuesday afternoon",
            "reason": "Exam anxiety",
            "is_anonymous": True,
        },
    )

    assert response.status_code == 200
    row = supabase_mock["insert_one"].await_args.kwargs["row"]
    assert row["status"] == "pending"
    assert row["is_anonymous"] is True


def test_counselor_requests_scoped_to_user(
    authenticated_client: TestClient, supabase_mock
) -> None:
    response = authenticated_client.get("/api/counselor/requests")

    assert response.status_code == 200
    params = supabase_mock["select"].await_args.kwargs["params"]
    assert params["user_id"] == f"eq.{TEST_USER_ID}"
