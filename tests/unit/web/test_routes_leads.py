"""Tests for breezeline.web.routes.leads - Admin lead listing and clearing."""

SUBMISSION = {"projectType": "2BHK", "projectClass": "Standard", "area": 50, "totalPrice": 110000}


class TestListEstimations:
    """Tests for GET /api/estimations."""

    def test_requires_session(self, client):
        response = client.get("/api/estimations")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Authentication required"}

    def test_lists_newest_first_with_stats(self, admin_client):
        admin_client.post("/api/submit-estimation", json=SUBMISSION)
        admin_client.post(
            "/api/submit-estimation",
            json={**SUBMISSION, "projectType": "Office", "area": 100, "email": "c@example.com"},
        )

        response = admin_client.get("/api/estimations")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [lead["projectType"] for lead in data["estimations"]] == ["Office", "2BHK"]
        assert data["estimations"][0]["email"] == "c@example.com"
        assert data["stats"]["total"] == 2
        assert data["stats"]["thisMonth"] == 2
        assert data["stats"]["totalValue"] == 110000 + 260000
        assert data["stats"]["formattedTotalValue"] == "AED 370,000.00"

    def test_limit(self, admin_client):
        for _ in range(3):
            admin_client.post("/api/submit-estimation", json=SUBMISSION)

        data = admin_client.get("/api/estimations", params={"limit": 2}).json()["data"]

        assert len(data["estimations"]) == 2
        assert data["stats"]["total"] == 3

    def test_limit_out_of_range(self, admin_client):
        assert admin_client.get("/api/estimations", params={"limit": 0}).status_code == 400


class TestClearEstimations:
    """Tests for DELETE /api/estimations."""

    def test_requires_session(self, client):
        client.post("/api/submit-estimation", json=SUBMISSION)

        assert client.delete("/api/estimations").status_code == 401

    def test_clear(self, admin_client):
        admin_client.post("/api/submit-estimation", json=SUBMISSION)

        response = admin_client.delete("/api/estimations")

        assert response.status_code == 200
        assert response.json()["data"] == {"deleted": 1}
        assert admin_client.get("/api/estimations").json()["data"]["stats"]["total"] == 0
