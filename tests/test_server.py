#!/usr/bin/env python3
"""
HTTP-level tests for the Prompt Workbench API (api/server.py).

The pipelines are replaced with AsyncMocks (or a Workbench wired to fakes),
so these tests only exercise routing, request parsing, and the mapping of
WorkbenchError onto status codes and localized ``error`` bodies.

Usage:
    python3 -m unittest tests.test_server -v
"""

import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from api import config  # noqa: E402
from api.server import app  # noqa: E402
from workbench.errors import (  # noqa: E402
    BadRequest,
    MalformedUpstreamJSON,
    QuotaExceeded,
    RateLimited,
    Unconfigured,
    UpstreamError,
)
from workbench.messages import render  # noqa: E402
from workbench.models import (  # noqa: E402
    AnalyzeResult,
    ConversationReply,
    Evaluation,
    PromptAnalysis,
    StressTest,
    WorkflowResult,
)


def _workbench(**methods):
    workbench = MagicMock()
    for name, value in methods.items():
        mock = AsyncMock()
        if isinstance(value, Exception):
            mock.side_effect = value
        else:
            mock.return_value = value
        setattr(workbench, name, mock)
    return workbench


class ServerTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    def use(self, workbench):
        patcher = patch("api.server.get_workbench", return_value=workbench)
        patcher.start()
        self.addCleanup(patcher.stop)
        return workbench


class TestHealth(ServerTestCase):

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "model": config.GEMINI_MODEL})


class TestAnalyzeEndpoint(ServerTestCase):

    def test_success(self):
        result = AnalyzeResult(
            analysis=PromptAnalysis(overall_score=7, suggestions=["Add examples"]),
            stress_tests=[StressTest(question="Q", ideal_answer="A")],
        )
        workbench = self.use(_workbench(analyze=result))

        response = self.client.post("/api/analyze", json={"prompt": "You are a bot"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["analysis"]["overallScore"], 7)
        self.assertEqual(body["stress_tests"], [{"pergunta_capciosa": "Q", "resposta_ideal": "A"}])
        workbench.analyze.assert_awaited_once_with("You are a bot")

    def test_missing_prompt_is_400_in_portuguese(self):
        self.use(_workbench(analyze=BadRequest("missing_prompt")))
        response = self.client.post("/api/analyze", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": render("missing_prompt", "pt")})

    def test_accept_language_english(self):
        self.use(_workbench(analyze=BadRequest("missing_prompt")))
        response = self.client.post("/api/analyze", json={}, headers={"Accept-Language": "en-US,en;q=0.9"})
        self.assertEqual(response.json(), {"error": "No prompt was provided for analysis."})

    def test_rate_limited(self):
        self.use(_workbench(analyze=RateLimited()))
        response = self.client.post("/api/analyze", json={"prompt": "x"})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["retryAfter"], 60)

    def test_quota_exceeded(self):
        self.use(_workbench(analyze=QuotaExceeded()))
        response = self.client.post("/api/analyze", json={"prompt": "x"})
        self.assertEqual(response.status_code, 429)
        body = response.json()
        self.assertIn("details", body)
        self.assertNotIn("retryAfter", body)

    def test_unconfigured(self):
        self.use(_workbench(analyze=Unconfigured("Google AI")))
        response = self.client.post("/api/analyze", json={"prompt": "x"})
        self.assertEqual(response.status_code, 500)
        self.assertIn("Google AI", response.json()["error"])

    def test_malformed_json(self):
        self.use(_workbench(analyze=MalformedUpstreamJSON()))
        response = self.client.post("/api/analyze", json={"prompt": "x"}, headers={"Accept-Language": "en"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "The AI response was not valid JSON."})

    def test_unexpected_error_is_internal(self):
        self.use(_workbench(analyze=RuntimeError("boom")))
        response = self.client.post("/api/analyze", json={"prompt": "x"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": render("internal_error", "pt")})

    def test_invalid_body(self):
        self.use(_workbench())
        response = self.client.post(
            "/api/analyze",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": render("invalid_request", "pt")})


class TestConversationEndpoint(ServerTestCase):

    def test_success(self):
        workbench = self.use(_workbench(simulate=ConversationReply(response="Olá", conversation_id="c-1")))
        response = self.client.post(
            "/api/dify/conversation",
            json={"userPrompt": "P", "message": "hi", "conversation_id": "c-0", "user_id": "u"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"response": "Olá", "conversation_id": "c-1"})
        workbench.simulate.assert_awaited_once_with("P", "hi", conversation_id="c-0", user_id="u")

    def test_upstream_status_passthrough(self):
        self.use(_workbench(simulate=UpstreamError("Dify", 404, "app not found", include_body=True)))
        response = self.client.post("/api/dify/conversation", json={"userPrompt": "P", "message": "hi"})
        self.assertEqual(response.status_code, 404)
        self.assertIn("app not found", response.json()["error"])

    def test_upstream_non_error_status_becomes_500(self):
        self.use(_workbench(simulate=UpstreamError("Dify", 302)))
        response = self.client.post("/api/dify/conversation", json={"userPrompt": "P", "message": "hi"})
        self.assertEqual(response.status_code, 500)


class TestEvaluateEndpoint(ServerTestCase):

    def test_success(self):
        workbench = self.use(_workbench(evaluate=Evaluation(score=9, feedback="good")))
        response = self.client.post(
            "/api/evaluate-response",
            json={"userPrompt": "P", "perguntaCapciosa": "Q", "respostaIdeal": "I", "aiResponse": "A"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"score": 9, "feedback": "good"})
        workbench.evaluate.assert_awaited_once_with("P", "Q", "I", "A")

    def test_incomplete(self):
        self.use(_workbench(evaluate=BadRequest("missing_evaluation_fields")))
        response = self.client.post("/api/evaluate-response", json={"userPrompt": "P"})
        self.assertEqual(response.status_code, 400)

    def test_unexpected_error_uses_evaluation_wording(self):
        self.use(_workbench(evaluate=RuntimeError("boom")))
        response = self.client.post(
            "/api/evaluate-response",
            json={"userPrompt": "P", "perguntaCapciosa": "Q", "respostaIdeal": "I", "aiResponse": "A"},
            headers={"Accept-Language": "en"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "An internal error occurred in the evaluation server."})


class TestWorkflowEndpoint(ServerTestCase):

    def test_success(self):
        graph = {"nodes": [], "connections": {}, "active": False, "settings": {"executionOrder": "v1"}, "tags": []}
        result = WorkflowResult(result=graph, stress_tests=[], diagnostics=["note"])
        workbench = self.use(_workbench(synthesize=result))
        response = self.client.post("/api/n8n", json={"query": "Build a bot"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"result": graph, "stress_tests": []})
        workbench.synthesize.assert_awaited_once_with("Build a bot")

    def test_missing_query_with_real_pipeline(self):
        from api.llm import DifyClient, GeminiClient
        from workbench.pipelines import Workbench

        self.use(Workbench(llm=GeminiClient("configured-key"), agent=DifyClient("configured-key")))
        response = self.client.post("/api/n8n", json={"query": "   "}, headers={"Accept-Language": "en"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No automation description was provided."})

    def test_unconfigured_with_real_pipeline(self):
        from api.llm import DifyClient, GeminiClient
        from workbench.pipelines import Workbench

        self.use(Workbench(llm=GeminiClient("SUA_CHAVE_API_AQUI"), agent=DifyClient("")))
        response = self.client.post("/api/n8n", json={"query": "x"}, headers={"Accept-Language": "en"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "The Google AI API key is not configured on the server."})


if __name__ == "__main__":
    unittest.main()
