import unittest

from portfolio_api.tests.support import (
    accept_project,
    make_client,
    signup_admin,
    signup_client,
    submit_project,
)


def assert_payment_consistent(test: unittest.TestCase, project: dict) -> None:
    payment = project["payment"]
    test.assertEqual(
        payment["due_amount"], payment["final_budget"] - payment["paid_amount"]
    )
    test.assertEqual(payment["fully_paid"], payment["due_amount"] <= 0)


class ProjectSubmissionTests(unittest.TestCase):
    def setUp(self):
        self.client = make_client()
        self.user = signup_client(self.client)

    def test_submit_requires_fields_or_attachment(self):
        response = self.client.post(
            "/api/projects/requests",
            json={"project_name": "Half a brief"},
            headers=self.user["headers"],
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Upload document or fill all fields")

        response = self.client.post(
            "/api/projects/requests",
            json={"attachment_link": "https://files.studio.io/brief.pdf"},
            headers=self.user["headers"],
        )
        self.assertEqual(response.status_code, 201)

    def test_new_project_starts_requested_without_payment(self):
        project = submit_project(self.client, self.user)
        self.assertEqual(project["status"], "requested")
        self.assertIsNone(project["payment"])
        self.assertEqual(project["version"], 1)
        self.assertTrue(project["has_unread_update"])
        self.assertEqual(project["last_updated_by"], "client")

    def test_clients_only_see_their_own_projects(self):
        project = submit_project(self.client, self.user)
        other = signup_client(self.client, email="grace@studio.io", name="Grace")

        listing = self.client.get("/api/projects/requests", headers=other["headers"])
        self.assertEqual(listing.json(), [])

        response = self.client.get(
            f"/api/projects/requests/{project['id']}", headers=other["headers"]
        )
        self.assertEqual(response.status_code, 404)

        response = self.client.get(
            f"/api/projects/{project['id']}/commits", headers=other["headers"]
        )
        self.assertEqual(response.status_code, 403)

    def test_non_finite_budget_is_rejected(self):
        for raw in ("Infinity", "-Infinity", "NaN"):
            response = self.client.post(
                "/api/projects/requests",
                content=(
                    '{"project_name": "Overflow", "duration": "1 week", '
                    f'"budget": {raw}, "tools": "Python", "project_type": "web", '
                    '"description": "Budget that cannot be serialized"}'
                ),
                headers={**self.user["headers"], "Content-Type": "application/json"},
            )
            self.assertEqual(response.status_code, 400, raw)
            self.assertFalse(response.json()["success"])

        admin = signup_admin(self.client)
        listing = self.client.get("/api/admin/projects/requests", headers=admin["headers"])
        self.assertEqual(listing.status_code, 200)
        stats = self.client.get("/api/admin/dashboard/stats", headers=admin["headers"])
        self.assertEqual(stats.status_code, 200)


class ProjectLifecycleTests(unittest.TestCase):
    def setUp(self):
        self.client = make_client()
        self.user = signup_client(self.client)
        self.admin = signup_admin(self.client)
        self.project = submit_project(self.client, self.user)
        self.base = f"/api/admin/projects/requests/{self.project['id']}"

    def test_accept_with_initial_payment_then_settle(self):
        project = accept_project(
            self.client, self.admin, self.project["id"], initial_payment=True
        )
        payment = project["payment"]
        self.assertEqual(payment["final_budget"], 1000)
        self.assertEqual(payment["paid_amount"], 500)
        self.assertEqual(payment["due_amount"], 500)
        self.assertFalse(payment["fully_paid"])
        self.assertTrue(payment["initial_payment"])
        assert_payment_consistent(self, project)

        response = self.client.post(
            f"{self.base}/payment", json={"amount": 500}, headers=self.admin["headers"]
        )
        self.assertEqual(response.status_code, 200)
        project = response.json()["project"]
        self.assertEqual(project["payment"]["due_amount"], 0)
        self.assertTrue(project["payment"]["fully_paid"])
        self.assertEqual(len(project["payment"]["payment_history"]), 2)
        assert_payment_consistent(self, project)

    def test_accept_uses_final_budget_override(self):
        project = accept_project(
            self.client, self.admin, self.project["id"], final_budget=1500
        )
        self.assertEqual(project["payment"]["final_budget"], 1500)
        self.assertEqual(project["payment"]["paid_amount"], 0)
        self.assertEqual(project["payment"]["due_amount"], 1500)

    def test_reject_requires_reason_and_leaves_status(self):
        response = self.client.put(
            f"{self.base}/reject", json={"reason": "   "}, headers=self.admin["headers"]
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Rejection reason is required")

        project = self.client.get(self.base, headers=self.admin["headers"]).json()
        self.assertEqual(project["status"], "requested")

    def test_decided_projects_cannot_be_decided_again(self):
        response = self.client.put(
            f"{self.base}/reject",
            json={"reason": "Out of scope"},
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["project"]["rejection"]["reason"], "Out of scope")

        response = self.client.put(f"{self.base}/accept", json={}, headers=self.admin["headers"])
        self.assertEqual(response.status_code, 400)

    def test_negotiate_then_accept(self):
        response = self.client.put(
            f"{self.base}/negotiate",
            json={"proposed_budget": 1200, "admin_notes": "Needs a CMS"},
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 200)
        project = response.json()["project"]
        self.assertEqual(project["status"], "negotiable")
        self.assertEqual(project["negotiation"]["proposed_budget"], 1200)
        self.assertEqual(project["negotiation"]["proposed_duration"], "6 weeks")
        self.assertIsNone(project["payment"])

        project = accept_project(self.client, self.admin, self.project["id"], final_budget=1200)
        self.assertEqual(project["status"], "accepted")

        response = self.client.put(
            f"{self.base}/negotiate", json={}, headers=self.admin["headers"]
        )
        self.assertEqual(response.status_code, 400)

    def test_payment_rules(self):
        response = self.client.post(
            f"{self.base}/payment", json={"amount": 100}, headers=self.admin["headers"]
        )
        self.assertEqual(response.status_code, 400)

        accept_project(self.client, self.admin, self.project["id"])
        for amount in (0, -20):
            response = self.client.post(
                f"{self.base}/payment",
                json={"amount": amount},
                headers=self.admin["headers"],
            )
            self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"{self.base}/payment",
            json={"amount": 250, "note": "Deposit", "payment_method": "UPI"},
            headers=self.admin["headers"],
        )
        project = response.json()["project"]
        self.assertEqual(project["payment"]["due_amount"], 750)
        self.assertEqual(project["payment"]["payment_history"][0]["note"], "Deposit")
        assert_payment_consistent(self, project)

    def test_non_finite_payment_is_rejected(self):
        accept_project(self.client, self.admin, self.project["id"])
        for raw in ("NaN", "Infinity"):
            response = self.client.post(
                f"{self.base}/payment",
                content=f'{{"amount": {raw}}}',
                headers={**self.admin["headers"], "Content-Type": "application/json"},
            )
            self.assertEqual(response.status_code, 400, raw)

        response = self.client.get(self.base, headers=self.admin["headers"])
        self.assertEqual(response.status_code, 200)
        project = response.json()
        self.assertEqual(project["payment"]["paid_amount"], 0)
        assert_payment_consistent(self, project)

    def test_commits(self):
        response = self.client.post(
            f"{self.base}/commit",
            json={"week_number": 1, "description": "Kickoff"},
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 400)

        accept_project(self.client, self.admin, self.project["id"])
        response = self.client.post(
            f"{self.base}/commit",
            json={
                "week_number": 1,
                "description": "Wireframes",
                "completed_tasks": ["Home page", "Menu page"],
            },
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 200)

        response = self.client.post(
            f"{self.base}/commit",
            json={"week_number": 1, "description": "Again"},
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["message"], "Week 1 already has a progress update"
        )

        response = self.client.put(
            f"{self.base}/commit/1",
            json={"description": "Wireframes and palette"},
            headers=self.admin["headers"],
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["commit"]["description"], "Wireframes and palette")
        self.assertEqual(response.json()["commit"]["completed_tasks"], ["Home page", "Menu page"])

        commits = self.client.get(
            f"/api/projects/{self.project['id']}/commits", headers=self.user["headers"]
        )
        self.assertEqual(commits.status_code, 200)
        self.assertEqual(commits.json()["project_name"], "Bakery storefront")
        self.assertEqual(len(commits.json()["commits"]), 1)

        response = self.client.delete(f"{self.base}/commit/1", headers=self.admin["headers"])
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["remaining_commits"], [])

        response = self.client.delete(f"{self.base}/commit/1", headers=self.admin["headers"])
        self.assertEqual(response.status_code, 404)

    def test_read_receipts(self):
        project = self.client.get(self.base, headers=self.admin["headers"]).json()
        self.assertFalse(project["has_unread_update"])
        self.assertEqual(project["client"]["email"], "ada@studio.io")

        accept_project(self.client, self.admin, self.project["id"])
        counts = self.client.get(
            "/api/projects/notifications", headers=self.user["headers"]
        ).json()
        self.assertEqual(counts["new_work_projects"], 1)
        self.assertEqual(counts["rejected_projects"], 0)

        project = self.client.get(
            f"/api/projects/requests/{self.project['id']}", headers=self.user["headers"]
        ).json()
        self.assertFalse(project["has_unread_update"])

        counts = self.client.get(
            "/api/projects/notifications", headers=self.user["headers"]
        ).json()
        self.assertEqual(counts["new_work_projects"], 0)

        work = self.client.get("/api/projects/work", headers=self.user["headers"]).json()
        self.assertEqual([p["id"] for p in work], [self.project["id"]])

    def test_stale_version_is_rejected(self):
        # The admin read clears the unread flag, which bumps the version.
        current = self.client.get(self.base, headers=self.admin["headers"]).json()
        self.assertEqual(current["version"], 2)

        response = self.client.put(
            f"{self.base}/accept", json={}, headers={**self.admin["headers"], "If-Match": "1"}
        )
        self.assertEqual(response.status_code, 409)

        response = self.client.put(
            f"{self.base}/accept", json={}, headers={**self.admin["headers"], "If-Match": "2"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["project"]["version"], 3)

    def test_admin_listing_and_stats(self):
        other = signup_client(self.client, email="grace@studio.io", name="Grace")
        second = submit_project(self.client, other, project_name="Portfolio revamp", budget=400)
        accept_project(self.client, self.admin, self.project["id"], initial_payment=True)

        listing = self.client.get(
            "/api/admin/projects/requests",
            params={"status": "requested"},
            headers=self.admin["headers"],
        ).json()
        self.assertEqual([p["id"] for p in listing], [second["id"]])
        self.assertEqual(listing[0]["client"]["name"], "Grace")

        stats = self.client.get("/api/admin/dashboard/stats", headers=self.admin["headers"]).json()
        self.assertEqual(stats["total_clients"], 2)
        self.assertEqual(stats["total_projects"], 2)
        self.assertEqual(stats["accepted_projects"], 1)
        self.assertEqual(stats["requested_projects"], 1)
        self.assertEqual(stats["total_revenue"], 1000)
        self.assertEqual(stats["total_paid"], 500)
        self.assertEqual(stats["total_due"], 500)

        clients = self.client.get("/api/admin/clients", headers=self.admin["headers"]).json()
        self.assertEqual(len(clients), 2)
        self.assertTrue(all("password_hash" not in c for c in clients))

        detail = self.client.get(
            f"/api/admin/clients/{self.user['id']}", headers=self.admin["headers"]
        ).json()
        self.assertEqual(detail["stats"]["accepted_projects"], 1)
        self.assertEqual(len(detail["projects"]), 1)

        statistics = self.client.get(
            "/api/admin/projects/statistics", headers=self.admin["headers"]
        ).json()
        self.assertEqual(len(statistics), 1)
        self.assertEqual(statistics[0]["total_commits"], 0)

    def test_unknown_project_is_not_found(self):
        response = self.client.get(
            "/api/admin/projects/requests/missing", headers=self.admin["headers"]
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Project not found"})


if __name__ == "__main__":
    unittest.main()
