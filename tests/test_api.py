import os
import tempfile
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from api.main import create_app
from core.errors import StorageError
from infra.job_store import InMemoryJobStore
from infra.sqlite_job_store import SQLiteJobStore


class TestJobsApi(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = SQLiteJobStore(os.path.join(self._tmp.name, "jobs.db"))
        self.client = TestClient(create_app(store=self.store))

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def _create(self, **body):
        body.setdefault("url", "https://example.com/job")
        res = self.client.post("/jobs", json=body)
        self.assertEqual(res.status_code, 201, res.text)
        return res.json()["job"]

    # -------------------------
    # POST /jobs
    # -------------------------

    def test_create_derives_title_and_source(self):
        job = self._create(url="https://www.jobs.lever.co/acme/123")

        self.assertEqual(job["title"], "Job link (jobs.lever.co)")
        self.assertEqual(job["source"], "Lever")
        self.assertEqual(job["status"], "todo")
        self.assertTrue(job["createdAt"].endswith("Z"))
        self.assertIsNone(job["appliedAt"])
        self.assertIsNone(job["hiddenAt"])

    def test_create_keeps_supplied_fields(self):
        job = self._create(
            url="https://example.com/job",
            title="Platform Engineer",
            company="Acme",
            source="Referral",
            notes="via Sam",
        )

        self.assertEqual(job["title"], "Platform Engineer")
        self.assertEqual(job["company"], "Acme")
        self.assertEqual(job["source"], "Referral")
        self.assertEqual(job["notes"], "via Sam")
        self.assertEqual(job["url"], "https://example.com/job")

    def test_create_missing_url(self):
        res = self.client.post("/jobs", json={"title": "No link"})

        self.assertEqual(res.status_code, 400)
        self.assertIn("url", res.json()["error"]["fieldErrors"])
        self.assertEqual(self.store.list(), [])

    def test_create_malformed_url(self):
        res = self.client.post("/jobs", json={"url": "definitely not a url"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"]["fieldErrors"], {"url": ["Invalid url"]})

    def test_create_empty_title(self):
        res = self.client.post("/jobs", json={"url": "https://example.com", "title": ""})

        self.assertEqual(res.status_code, 400)
        self.assertIn("title", res.json()["error"]["fieldErrors"])

    def test_create_null_optional_field(self):
        res = self.client.post("/jobs", json={"url": "https://x.com/a", "company": None})

        self.assertEqual(res.status_code, 400)
        self.assertIn("company", res.json()["error"]["fieldErrors"])
        self.assertEqual(self.store.list(), [])

    def test_create_id_collision_is_opaque_500(self):
        client = TestClient(create_app(store=self.store), raise_server_exceptions=False)

        with patch("core.lifecycle.new_id", return_value="fixedid"):
            first = client.post("/jobs", json={"url": "https://example.com/a"})
            with self.assertLogs("api.main", level="ERROR"):
                second = client.post("/jobs", json={"url": "https://example.com/b"})

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 500)
        self.assertEqual(second.json(), {"error": "storage_error"})
        self.assertEqual(len(self.store.list()), 1)

    def test_create_invalid_json(self):
        res = self.client.post(
            "/jobs",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(res.status_code, 400)
        self.assertTrue(res.json()["error"]["formErrors"])

    # -------------------------
    # GET /jobs
    # -------------------------

    def test_list_empty(self):
        res = self.client.get("/jobs")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"jobs": []})

    def test_list_returns_all_newest_first(self):
        created = [self._create(url=f"https://example.com/{i}") for i in range(5)]

        jobs = self.client.get("/jobs").json()["jobs"]

        self.assertEqual(len(jobs), 5)
        self.assertEqual([j["id"] for j in jobs], [j["id"] for j in reversed(created)])
        stamps = [j["createdAt"] for j in jobs]
        self.assertEqual(stamps, sorted(stamps, reverse=True))

    # -------------------------
    # PATCH /jobs/{id}
    # -------------------------

    def test_patch_to_applied_sets_applied_at(self):
        job = self._create()

        res = self.client.patch(f"/jobs/{job['id']}", json={"status": "applied"})

        self.assertEqual(res.status_code, 200)
        out = res.json()["job"]
        self.assertEqual(out["status"], "applied")
        self.assertIsNotNone(out["appliedAt"])
        self.assertIsNone(out["hiddenAt"])

    def test_applied_at_not_restamped(self):
        job = self._create()
        url = f"/jobs/{job['id']}"

        first = self.client.patch(url, json={"status": "applied"}).json()["job"]["appliedAt"]
        self.client.patch(url, json={"status": "todo"})
        again = self.client.patch(url, json={"status": "applied"}).json()["job"]

        self.assertEqual(again["appliedAt"], first)

    def test_patch_to_hidden_sets_hidden_at(self):
        job = self._create()

        out = self.client.patch(f"/jobs/{job['id']}", json={"status": "hidden"}).json()["job"]

        self.assertEqual(out["status"], "hidden")
        self.assertIsNotNone(out["hiddenAt"])

    def test_empty_patch_round_trip(self):
        job = self._create(company="Acme")

        res = self.client.patch(f"/jobs/{job['id']}", json={})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["job"], job)

    def test_patch_merges_fields(self):
        job = self._create(company="Acme", notes="first")

        out = self.client.patch(
            f"/jobs/{job['id']}",
            json={"notes": "second", "url": "https://example.org/new"},
        ).json()["job"]

        self.assertEqual(out["notes"], "second")
        self.assertEqual(out["url"], "https://example.org/new")
        self.assertEqual(out["company"], "Acme")
        self.assertEqual(out["title"], job["title"])
        self.assertEqual(out["createdAt"], job["createdAt"])

    def test_patch_ignores_immutable_fields(self):
        job = self._create()

        out = self.client.patch(
            f"/jobs/{job['id']}",
            json={"id": "hijack", "createdAt": "2000-01-01T00:00:00.000Z", "appliedAt": "x"},
        ).json()["job"]

        self.assertEqual(out, job)

    def test_patch_unknown_id(self):
        res = self.client.patch("/jobs/missing", json={"status": "applied"})

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json(), {"error": "not_found"})
        self.assertEqual(self.client.get("/jobs").json()["jobs"], [])

    def test_patch_invalid_status(self):
        job = self._create()

        res = self.client.patch(f"/jobs/{job['id']}", json={"status": "archived"})

        self.assertEqual(res.status_code, 400)
        self.assertIn("status", res.json()["error"]["fieldErrors"])

    def test_patch_invalid_url(self):
        job = self._create()

        res = self.client.patch(f"/jobs/{job['id']}", json={"url": "nope"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"]["fieldErrors"], {"url": ["Invalid url"]})
        self.assertEqual(self.store.get(job["id"]).url, job["url"])

    def test_patch_null_title_rejected(self):
        job = self._create()

        res = self.client.patch(f"/jobs/{job['id']}", json={"title": None})

        self.assertEqual(res.status_code, 400)

    def test_patch_null_fields_rejected(self):
        job = self._create(company="Acme")

        res = self.client.patch(f"/jobs/{job['id']}", json={"url": None, "source": None})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(set(res.json()["error"]["fieldErrors"]), {"url", "source"})
        self.assertEqual(self.store.get(job["id"]).url, job["url"])
        self.assertEqual(self.store.get(job["id"]).source, job["source"])

    def test_patch_null_status_rejected(self):
        job = self._create()

        res = self.client.patch(f"/jobs/{job['id']}", json={"status": None})

        self.assertEqual(res.status_code, 400)
        self.assertIn("status", res.json()["error"]["fieldErrors"])

    # -------------------------
    # DELETE /jobs/{id}
    # -------------------------

    def test_delete(self):
        job = self._create()

        res = self.client.delete(f"/jobs/{job['id']}")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"ok": True})
        self.assertEqual(self.client.get("/jobs").json()["jobs"], [])

    def test_delete_unknown_is_ok(self):
        res = self.client.delete("/jobs/never-existed")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"ok": True})

    # -------------------------
    # Extras
    # -------------------------

    def test_stats(self):
        a = self._create()
        self._create()
        self.client.patch(f"/jobs/{a['id']}", json={"status": "applied"})

        stats = self.client.get("/jobs/stats").json()["stats"]

        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["todo"], 1)
        self.assertEqual(stats["applied"], 1)
        self.assertEqual(stats["hidden"], 0)
        self.assertEqual(stats["thisWeek"], 2)
        self.assertEqual(stats["needsFollowUp"], 0)
        self.assertEqual(stats["applicationRate"], 50)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"ok": True})


class TestStorageFailures(unittest.TestCase):

    def test_storage_error_is_opaque_500(self):
        store = InMemoryJobStore()
        client = TestClient(create_app(store=store), raise_server_exceptions=False)

        with patch.object(store, "list", side_effect=StorageError("disk I/O error")):
            with self.assertLogs("api.main", level="ERROR"):
                res = client.get("/jobs")

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {"error": "storage_error"})


class TestLifespan(unittest.TestCase):

    def test_store_closed_on_shutdown(self):
        store = InMemoryJobStore()

        with patch.object(store, "close") as close:
            with TestClient(create_app(store=store)) as client:
                client.get("/jobs")
                close.assert_not_called()

        close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
