from datetime import datetime

import pytest

from civicapp.models.base import CommunityCategory, UserRole


def test_profile_counts_complaints(client, make_user):
    user_id, headers = make_user("Profiled")
    client.post(
        "/api/v1/complaints/",
        json={
            "title": "Stray dogs at park",
            "description": "A pack of stray dogs chases children in the park",
            "category": "Health",
            "location": {"lat": 12.9, "lng": 77.6, "address": "Cubbon Park"},
        },
        headers=headers,
    )

    profile = client.get(f"/api/v1/users/profile/{user_id}").json()

    assert profile["name"] == "Profiled"
    assert profile["complaints_count"] == 1


def test_profile_skips_deleted_communities(client, make_user, fake_db):
    user_id, _ = make_user()
    fake_db["users"].documents[0]["communities"].append("650000000000000000000c99")

    assert client.get(f"/api/v1/users/profile/{user_id}").json()["communities"] == []


def test_role_update_is_admin_only(client, make_user):
    user_id, headers = make_user("Citizen")
    _, admin_headers = make_user("Admin", role=UserRole.ADMIN)

    assert client.put(f"/api/v1/users/{user_id}/role", json={"role": "official"}, headers=headers).status_code == 403

    response = client.put(f"/api/v1/users/{user_id}/role", json={"role": "official"}, headers=admin_headers)
    assert response.json()["role"] == "official"


def test_graphql_complaint_history(client, make_user):
    _, headers = make_user("Reporter")
    _, admin_headers = make_user("Admin", role=UserRole.ADMIN)
    complaint = client.post(
        "/api/v1/complaints/",
        json={
            "title": "Water supply cut",
            "description": "No water supply in 4th block since Monday",
            "category": "Water",
            "location": {"lat": 12.9, "lng": 77.6, "address": "4th Block"},
        },
        headers=headers,
    ).json()
    client.put(
        f"/api/v1/complaints/{complaint['id']}/status",
        json={"status": "In Progress"},
        headers=admin_headers,
    )

    query = '{ complaint(id: "%s") { title status statusHistory { status } } }' % complaint["id"]
    data = client.post("/graphql", json={"query": query}).json()["data"]

    assert data["complaint"]["status"] == "In Progress"
    assert data["complaint"]["statusHistory"] == [{"status": "In Progress"}]


def _complaint(client, headers, lat=12.97, lng=77.59, **overrides):
    payload = {
        "title": "Garbage not collected",
        "description": "Garbage has not been collected on our street this week",
        "category": "Sanitation",
        "location": {"lat": lat, "lng": lng, "address": "Market Road"},
        **overrides,
    }
    response = client.post("/api/v1/complaints/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_complaints_submitted_counter(client, make_user, fake_db):
    _, headers = make_user("Counter")
    _complaint(client, headers)
    _complaint(client, headers)

    assert fake_db["users"].documents[0]["complaints_submitted"] == 2


def test_dashboard(client, make_user):
    _, headers = make_user("Resident")
    _, neighbour = make_user("Neighbour")
    client.put("/api/v1/users/location", json={"latitude": 12.975, "longitude": 77.59}, headers=headers)

    own = _complaint(client, headers)
    near = _complaint(client, neighbour, lat=12.97, lng=77.595)
    _complaint(client, neighbour, lat=13.5, lng=77.59)
    community = client.post(
        "/api/v1/communities/",
        json={"name": "Market Road Residents", "description": "Residents of Market Road", "category": "General"},
        headers=headers,
    ).json()

    dashboard = client.get("/api/v1/users/dashboard", headers=headers).json()

    assert [c["id"] for c in dashboard["recent_complaints"]] == [own["id"]]
    assert [c["id"] for c in dashboard["communities"]] == [community["id"]]
    assert dashboard["complaint_stats"] == {
        "total": 1, "submitted": 1, "in_progress": 0, "resolved": 0, "rejected": 0,
    }
    assert [c["id"] for c in dashboard["nearby_complaints"]] == [near["id"]]


def test_dashboard_without_location_has_no_nearby(client, make_user):
    _, headers = make_user()
    _, neighbour = make_user("Neighbour")
    _complaint(client, neighbour)

    assert client.get("/api/v1/users/dashboard", headers=headers).json()["nearby_complaints"] == []


def test_update_location(client, make_user, fake_db):
    _, headers = make_user()

    response = client.put(
        "/api/v1/users/location",
        json={"latitude": 12.9, "longitude": 77.6, "address": "Cubbon Park"},
        headers=headers,
    )

    assert response.json() == {"message": "Location updated successfully"}
    assert fake_db["users"].documents[0]["location"]["coordinates"] == [77.6, 12.9]


@pytest.mark.parametrize("payload", [
    {"latitude": 91, "longitude": 77.6},
    {"latitude": 12.9, "longitude": 181},
    {"latitude": 12.9, "longitude": 77.6, "address": "    a  "},
])
def test_update_location_is_validated(client, make_user, payload):
    _, headers = make_user()
    assert client.put("/api/v1/users/location", json=payload, headers=headers).status_code == 422


def test_leaderboard_ranking(client, make_user, fake_db):
    make_user("Low")
    make_user("High")
    make_user("Tied")
    make_user("Gone", is_active=False)
    users = fake_db["users"].documents
    users[0]["reputation_score"] = 5
    users[1]["reputation_score"] = 50
    users[2]["reputation_score"] = 5
    users[2]["complaints_submitted"] = 3
    users[3]["reputation_score"] = 100

    response = client.get("/api/v1/users/leaderboard").json()

    assert [u["name"] for u in response["items"]] == ["High", "Tied", "Low"]
    assert response["pagination"]["total"] == 3


def test_search_users(client, make_user):
    _, headers = make_user("Asha Rao")
    make_user("Ravi Kumar")
    make_user("Rashid Inactive", is_active=False)

    response = client.get("/api/v1/users/search", params={"q": " ra "}, headers=headers).json()

    assert sorted(u["name"] for u in response["items"]) == ["Asha Rao", "Ravi Kumar"]


def test_search_query_too_short(client, make_user):
    _, headers = make_user()
    response = client.get("/api/v1/users/search", params={"q": " a "}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Search query must be at least 2 characters"


def test_search_escapes_pattern(client, make_user):
    _, headers = make_user("Plain User")
    response = client.get("/api/v1/users/search", params={"q": ".*"}, headers=headers).json()
    assert response["items"] == []


def test_admin_stats(client, make_user, fake_db):
    _, headers = make_user("Citizen")
    _, admin_headers = make_user("Admin", role=UserRole.ADMIN)
    make_user("Veteran")
    fake_db["users"].documents[2]["created_at"] = datetime(2020, 1, 1)
    first = _complaint(client, headers)
    _complaint(client, headers, category="Roads")
    client.put(f"/api/v1/complaints/{first['id']}/status", json={"status": "Resolved"}, headers=admin_headers)
    client.post(
        "/api/v1/communities/",
        json={"name": "Road Watch", "description": "Tracking road repairs", "category": "Roads"},
        headers=headers,
    )

    stats = client.get("/api/v1/users/admin/stats", headers=admin_headers).json()

    assert stats["user_stats"] == {"total": 3, "new_this_month": 2}
    assert stats["complaint_stats"]["total"] == 2
    assert stats["complaint_stats"]["by_status"]["Resolved"] == 1
    assert stats["complaint_stats"]["by_status"]["Submitted"] == 1
    assert stats["complaint_stats"]["by_category"]["Roads"] == 1
    assert stats["complaint_stats"]["by_category"]["Water"] == 0
    assert stats["community_stats"] == {
        "total": 1,
        "by_category": {c.value: int(c.value == "Roads") for c in CommunityCategory},
    }
    assert len(stats["recent_activity"]) == 2


def test_admin_stats_is_admin_only(client, make_user):
    _, headers = make_user(role=UserRole.OFFICIAL)
    assert client.get("/api/v1/users/admin/stats", headers=headers).status_code == 403


def test_profile_complaint_stats(client, make_user):
    user_id, headers = make_user()
    _complaint(client, headers)

    profile = client.get(f"/api/v1/users/profile/{user_id}").json()

    assert profile["complaint_stats"]["submitted"] == 1
    assert profile["reputation_score"] == 0
