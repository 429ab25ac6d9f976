import unittest

import httpx
from fastapi.testclient import TestClient

from bidbot.cache import CacheStore, MemoryBackend
from bidbot.config import Settings
from bidbot.database import get_user
from bidbot.llm import LLMClient
from bidbot.main import create_app
from bidbot.platforms import PlatformClient
from bidbot.proposals import TemplateStore


def platform_handler(request: httpx.Request) -> httpx.Response:
    if "upwork" in request.url.host:
        return httpx.Response(200, json={"jobs": [
            {"id": "u1", "title": "React web app", "budget": 1200,
             "client": {"feedback": 4.7, "payment_verification_status": "VERIFIED"}},
        ]})
    return httpx.Response(503)


def make_client() -> TestClient:
    settings = Settings(database_url="sqlite://", upwork_api_key="up", freelancer_api_key="fl")
    templates = TemplateStore()
    templates.load()
    app = create_app(
        settings,
        cache=CacheStore(MemoryBackend()),
        platform_client=PlatformClient(settings, transport=httpx.MockTransport(platform_handler)),
        llm_client=LLMClient(api_key=None),
        templates=templates,
    )
    return TestClient(app)


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.client = make_client().__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["cache"]["backend"], "memory")
        self.assertEqual(body["platforms"], {"upwork": True, "freelancer": True, "fiverr": False})
        self.assertFalse(body["ai_enabled"])
        self.assertEqual(body["templates"], 5)

    def test_search_reports_platform_errors(self):
        r = self.client.post("/v1/search", json={"keywords": "react", "user_id": "42"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["stats"]["upwork"], {"count": 1, "error": None})
        self.assertIsNotNone(body["stats"]["freelancer"]["error"])
        self.assertEqual(body["stats"]["fiverr"]["count"], 1)
        self.assertEqual(body["total_found"], 2)
        self.assertFalse(body["cached"])

        again = self.client.post("/v1/search", json={"keywords": "react", "user_id": "42"}).json()
        self.assertTrue(again["cached"])

        history = self.client.get("/v1/search/history/42").json()
        self.assertEqual(history["total"], 2)

    def test_search_validation(self):
        self.assertEqual(self.client.post("/v1/search", json={"keywords": ""}).status_code, 422)
        self.assertEqual(self.client.post("/v1/search", json={"keywords": "x", "limit": 500}).status_code, 422)

    def test_generate_proposal_falls_back_to_template(self):
        payload = {
            "project": {
                "id": "u1", "platform": "upwork", "title": "React website",
                "description": "Create a React frontend", "skills": ["React"], "budget": 1200,
                "proposals": {"count": 3}, "client": {"rating": 4.5, "verified": True},
            },
            "profile": {"id": "7", "skills": ["React", "TypeScript"]},
            "options": {"language": "en", "personalize": True, "client_name": "Sam"},
        }
        r = self.client.post("/v1/proposals/generate", json=payload)
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["metadata"]["method"], "template")
        self.assertEqual(body["metadata"]["scores"]["competition"], 94)
        self.assertTrue(body["proposal"].startswith("Hi Sam!"))
        self.assertIsNotNone(body["proposal_id"])

        history = self.client.get("/v1/proposals/history/7").json()
        self.assertEqual(history["total"], 1)
        self.assertEqual(history["items"][0]["project_id"], "u1")

        stats = self.client.get("/v1/stats").json()
        self.assertEqual(stats["proposals"]["total_generated"], 1)
        self.assertIn("upwork", stats["rate_limits"])

        self.client.post("/v1/proposals/generate", json=payload)
        db = self.client.app.state.session_factory()
        try:
            user = get_user(db, 7)
        finally:
            db.close()
        self.assertEqual(user.stats.total_proposals, 2)
        self.assertEqual(user.profile.skills, ["React", "TypeScript"])

    def test_generate_requires_project_identity(self):
        r = self.client.post("/v1/proposals/generate", json={"project": {"title": "no id"}})
        self.assertEqual(r.status_code, 422)

    def test_templates_and_analytics(self):
        templates = self.client.get("/v1/templates").json()
        self.assertIn("mobile_development", [t["key"] for t in templates])

        self.client.post("/v1/search", json={"keywords": "react"})
        report = self.client.get("/v1/analytics/report", params={"period": "daily"}).json()
        self.assertEqual(report["searches"]["total"], 3)
        export = self.client.get("/v1/analytics/export")
        self.assertEqual(export.status_code, 200)
        self.assertTrue(export.text.startswith("type,timestamp"))


if __name__ == "__main__":
    unittest.main()
