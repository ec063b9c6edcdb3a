from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from tests.fakes import build_biology_store
from tutor_kb.api.deps import get_content_store, get_knowledge_gateway, get_settings_service
from tutor_kb.main import app
from tutor_kb.rag.knowledge_gateway import KnowledgeGateway
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings
from tutor_kb.rag.strategies import AssertionRetriever, ChunkRetriever, MemoryRetriever


class _StaticSettingsService:
    def __init__(self, settings: KnowledgeRetrievalSettings):
        self.settings = settings

    async def aget(self) -> KnowledgeRetrievalSettings:
        return self.settings


class _BrokenGateway:
    async def retrieve(self, *args, **kwargs):
        raise RuntimeError("gateway exploded")


def _knowledge_request(*user_texts: str, phone: str | None = None) -> dict:
    messages = [{"role": "assistant", "content": "Hi, what are we studying today?"}]
    messages.extend({"role": "user", "content": text} for text in user_texts)
    body = {"message": {"type": "knowledge-base-request", "messages": messages}}
    if phone:
        body["message"]["call"] = {"customer": {"number": phone}}
    return body


def _tool_request(*tool_calls: dict) -> dict:
    return {"message": {"type": "tool-calls", "toolCallList": list(tool_calls)}}


class VapiEndpointsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = build_biology_store()
        gateway = KnowledgeGateway(
            strategies=[AssertionRetriever(self.store), ChunkRetriever(self.store), MemoryRetriever(self.store)]
        )
        app.dependency_overrides[get_content_store] = lambda: self.store
        app.dependency_overrides[get_knowledge_gateway] = lambda: gateway
        app.dependency_overrides[get_settings_service] = lambda: _StaticSettingsService(
            KnowledgeRetrievalSettings()
        )
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    # ------------------------------------------------------------------
    # knowledge-base
    # ------------------------------------------------------------------

    def test_knowledge_base_returns_documents(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/knowledge-base",
            json=_knowledge_request("photosynthesis", "light reaction chlorophyll", phone="+44 7700 900123"),
        )
        self.assertEqual(resp.status_code, 200)
        documents = resp.json()["documents"]
        self.assertGreater(len(documents), 0)
        self.assertTrue(documents[0]["content"].startswith("[fact | Chapter 3 | Published Reference]"))
        self.assertTrue(any(d["content"].startswith("[Caller Memory]") for d in documents))
        scores = [d["similarity"] for d in documents]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertTrue(all(0.0 <= s <= 1.0 for s in scores))

    def test_unknown_phone_gets_no_memories(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/knowledge-base",
            json=_knowledge_request("photosynthesis light reaction", phone="+10000000000"),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(any(d["content"].startswith("[Caller Memory]") for d in resp.json()["documents"]))

    def test_no_user_messages_returns_empty(self) -> None:
        resp = self.client.post("/api/v1/vapi/knowledge-base", json=_knowledge_request())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"documents": []})

    def test_malformed_body_returns_empty_documents(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/knowledge-base",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"documents": []})

    def test_gateway_failure_returns_empty_documents(self) -> None:
        app.dependency_overrides[get_knowledge_gateway] = lambda: _BrokenGateway()
        resp = self.client.post("/api/v1/vapi/knowledge-base", json=_knowledge_request("photosynthesis"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"documents": []})

    # ------------------------------------------------------------------
    # tools
    # ------------------------------------------------------------------

    def test_lookup_teaching_point_found(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/tools",
            json=_tool_request(
                {"id": "call-1", "function": {"name": "lookup_teaching_point", "arguments": {"topic": "photosynthesis"}}}
            ),
        )
        self.assertEqual(resp.status_code, 200)
        result = resp.json()["results"][0]
        self.assertEqual(result["toolCallId"], "call-1")
        self.assertTrue(result["result"]["found"])
        self.assertEqual(result["result"]["count"], 2)
        point = result["result"]["points"][0]
        self.assertEqual(point["chapter"], "Chapter 3")
        self.assertEqual(point["source"], "Biology Textbook")
        self.assertEqual(point["examRelevance"], 0.9)

    def test_lookup_teaching_point_string_arguments_and_limit(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/tools",
            json=_tool_request(
                {
                    "id": "call-2",
                    "function": {
                        "name": "lookup_teaching_point",
                        "arguments": '{"topic": "photosynthesis", "limit": 1}',
                    },
                }
            ),
        )
        self.assertEqual(resp.json()["results"][0]["result"]["count"], 1)

    def test_lookup_teaching_point_not_found(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/tools",
            json=_tool_request(
                {"id": "call-3", "function": {"name": "lookup_teaching_point", "arguments": {"topic": "quantum"}}}
            ),
        )
        self.assertEqual(
            resp.json()["results"][0]["result"],
            {"found": False, "message": 'No teaching content found for "quantum"'},
        )

    def test_lookup_teaching_point_requires_topic(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/tools",
            json=_tool_request({"id": "call-4", "function": {"name": "lookup_teaching_point", "arguments": {}}}),
        )
        self.assertEqual(resp.json()["results"][0]["result"], {"error": "topic is required"})

    def test_unknown_tool(self) -> None:
        resp = self.client.post(
            "/api/v1/vapi/tools",
            json=_tool_request({"id": "call-5", "function": {"name": "book_lesson", "arguments": {}}}),
        )
        self.assertEqual(resp.json()["results"][0]["result"], {"error": "Unknown tool: book_lesson"})

    def test_invalid_tool_request(self) -> None:
        resp = self.client.post("/api/v1/vapi/tools", json=[1, 2, 3])
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Tool execution failed"})

    def test_health(self) -> None:
        resp = self.client.get("/api/v1/vapi/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "healthy")

        root = self.client.get("/")
        self.assertEqual(root.json()["status"], "ok")


if __name__ == "__main__":
    unittest.main()
