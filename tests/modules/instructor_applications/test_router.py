"""
HTTP tests for the public and admin instructor application endpoints.
"""

import pytest

BASE = "/api/v1/instructor-applications"


# ============================================
# Public submission
# ============================================


@pytest.mark.asyncio
async def test_submit_application(client, application_payload, mock_notifier):
    response = await client.post(BASE, json=application_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["application_id"]
    mock_notifier.send_application_submitted.assert_called_once()


@pytest.mark.asyncio
async def test_submit_succeeds_when_admin_email_fails(client, application_payload, mock_notifier):
    mock_notifier.send_application_submitted.side_effect = RuntimeError("provider down")

    response = await client.post(BASE, json=application_payload)

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_submit_duplicate_is_409(client, submit_application, application_payload):
    await submit_application()

    response = await client.post(BASE, json={**application_payload, "email": "ADA@example.com"})

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_submit_by_existing_user_is_409(client, create_user, application_payload):
    await create_user(email="ada@example.com")

    response = await client.post(BASE, json=application_payload)

    assert response.status_code == 409
    assert response.json()["detail"]["message"] == "User with this email already exists."


@pytest.mark.asyncio
async def test_submit_validation_errors(client, application_payload):
    bad_url = {
        **application_payload,
        "profile": {**application_payload["profile"], "linkedin_url": "https://example.com/ada"},
    }
    bad_experience = {
        **application_payload,
        "profile": {**application_payload["profile"], "experience": "forever"},
    }

    assert (await client.post(BASE, json=bad_url)).status_code == 422
    assert (await client.post(BASE, json=bad_experience)).status_code == 422


@pytest.mark.asyncio
async def test_submit_is_rate_limited(client, application_payload):
    statuses = []
    for i in range(6):
        payload = {**application_payload, "email": f"applicant{i}@example.com"}
        statuses.append((await client.post(BASE, json=payload)).status_code)

    assert statuses == [201] * 5 + [429]


# ============================================
# Admin access control
# ============================================


@pytest.mark.asyncio
async def test_admin_endpoints_require_token(client):
    assert (await client.get(BASE)).status_code == 401
    assert (await client.get(f"{BASE}/any-id")).status_code == 401
    assert (await client.put(f"{BASE}/any-id/approve")).status_code == 401
    assert (await client.put(f"{BASE}/any-id/reject")).status_code == 401
    assert (await client.delete(f"{BASE}/any-id")).status_code == 401


@pytest.mark.asyncio
async def test_admin_endpoints_reject_non_admin(client, student_headers):
    response = await client.get(BASE, headers=student_headers)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"
    assert (await client.put(f"{BASE}/any-id/approve", headers=student_headers)).status_code == 403


# ============================================
# Admin review
# ============================================


@pytest.mark.asyncio
async def test_list_and_get_hide_password_hash(client, submit_application, admin_headers):
    application_id = await submit_application()

    listing = await client.get(BASE, headers=admin_headers)
    detail = await client.get(f"{BASE}/{application_id}", headers=admin_headers)

    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["page_size"] == 10
    assert body["applications"][0]["id"] == application_id
    assert "password_hash" not in listing.text

    assert detail.status_code == 200
    assert detail.json()["status"] == "pending"
    assert detail.json()["email"] == "ada@example.com"
    assert "password_hash" not in detail.text


@pytest.mark.asyncio
async def test_list_pagination_bounds(client, admin_headers):
    assert (await client.get(f"{BASE}?limit=101", headers=admin_headers)).status_code == 422
    assert (await client.get(f"{BASE}?page=0", headers=admin_headers)).status_code == 422

    response = await client.get(f"{BASE}?status=approved&limit=100", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["applications"] == []


@pytest.mark.asyncio
async def test_get_unknown_application_is_404(client, admin_headers):
    response = await client.get(f"{BASE}/missing", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_approve_creates_instructor_who_can_log_in(
    client, submit_application, admin_headers, admin_id, mock_notifier
):
    application_id = await submit_application()

    response = await client.put(f"{BASE}/{application_id}/approve", headers=admin_headers)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == "ada@example.com"
    assert user["role"] == "instructor"
    assert "password_hash" not in response.text
    mock_notifier.send_application_approved.assert_called_once()

    detail = (await client.get(f"{BASE}/{application_id}", headers=admin_headers)).json()
    assert detail["status"] == "approved"
    assert detail["approved_by"] == admin_id

    login = await client.post(
        "/api/v1/auth/login", json={"email": "ada@example.com", "password": "analytical-engine"}
    )
    assert login.status_code == 200
    assert login.json()["is_instructor"] is True


@pytest.mark.asyncio
async def test_second_decision_is_invalid_state(client, submit_application, admin_headers):
    application_id = await submit_application()
    await client.put(f"{BASE}/{application_id}/approve", headers=admin_headers)

    again = await client.put(f"{BASE}/{application_id}/approve", headers=admin_headers)
    reject = await client.put(f"{BASE}/{application_id}/reject", headers=admin_headers)

    assert again.status_code == 409
    assert again.json()["detail"]["error"] == "INVALID_STATE"
    assert reject.status_code == 409
    assert reject.json()["detail"]["error"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_approve_when_user_exists_is_conflict(
    client, submit_application, create_user, admin_headers
):
    application_id = await submit_application()
    await create_user(email="ada@example.com")

    response = await client.put(f"{BASE}/{application_id}/approve", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "CONFLICT"
    detail = (await client.get(f"{BASE}/{application_id}", headers=admin_headers)).json()
    assert detail["status"] == "pending"


@pytest.mark.asyncio
async def test_reject_with_and_without_reason(client, submit_application, admin_headers, mock_notifier):
    with_reason = await submit_application()
    without_reason = await submit_application(email="bob@example.com", name="Bob")

    first = await client.put(
        f"{BASE}/{with_reason}/reject", json={"reason": "Incomplete"}, headers=admin_headers
    )
    second = await client.put(f"{BASE}/{without_reason}/reject", headers=admin_headers)

    assert first.status_code == 200
    assert first.json()["application_id"] == with_reason
    assert second.status_code == 200

    detail = (await client.get(f"{BASE}/{with_reason}", headers=admin_headers)).json()
    assert detail["status"] == "rejected"
    assert detail["rejection_reason"] == "Incomplete"
    assert mock_notifier.send_application_rejected.call_count == 2

    login = await client.post(
        "/api/v1/auth/login", json={"email": "ada@example.com", "password": "analytical-engine"}
    )
    assert login.status_code == 401


@pytest.mark.asyncio
async def test_delete_application(client, submit_application, admin_headers):
    application_id = await submit_application()

    deleted = await client.delete(f"{BASE}/{application_id}", headers=admin_headers)
    again = await client.delete(f"{BASE}/{application_id}", headers=admin_headers)

    assert deleted.status_code == 200
    assert deleted.json()["application_id"] == application_id
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_approve_is_rate_limited_per_admin(client, admin_headers):
    statuses = [
        (await client.put(f"{BASE}/missing-{i}/approve", headers=admin_headers)).status_code
        for i in range(11)
    ]

    assert statuses[:10] == [404] * 10
    assert statuses[10] == 429
