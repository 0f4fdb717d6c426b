"""
Integration tests for POST /quiz.

The generator dependency is replaced with one that talks to an
httpx.MockTransport, so no network access and no real backoff delays.
"""
import json

import httpx
import pytest

from hgtracker.main import app
from hgtracker.routers.quiz import get_quiz_generator
from hgtracker.services.quiz import QuizGenerator, QuizSettings

BASE_URL = "/quiz"
ENDPOINT = "https://llm.test/v1/chat/completions"


def make_questions(count):
    return [
        {"question": f"Question {i}?", "options": ["A", "B", "C", "D"], "correctAnswer": i % 4}
        for i in range(1, count + 1)
    ]


def completion(items):
    content = "```json\n" + json.dumps(items) + "\n```"
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


async def no_sleep(delay):
    return None


class Upstream:
    """Records requests and answers every one with the same response."""

    def __init__(self, response):
        self.response = response
        self.requests = []
        self.api_key = "test-key"

    def __call__(self, request):
        self.requests.append(request)
        return self.response

    def prompt(self, n=0):
        return json.loads(self.requests[n].content)["messages"][1]["content"]


@pytest.fixture()
def upstream(client):
    """Install a mocked completion endpoint; tests set `upstream.response`."""
    mock = Upstream(completion(make_questions(5)))

    def generator():
        return QuizGenerator(
            QuizSettings(api_key=mock.api_key, endpoint=ENDPOINT),
            client=httpx.AsyncClient(transport=httpx.MockTransport(mock)),
            sleep=no_sleep,
        )

    app.dependency_overrides[get_quiz_generator] = generator
    return mock


def add_impression(client, description, categories=()):
    r = client.post("/impressions", json={"description": description, "categories": list(categories)})
    assert r.status_code == 201, r.text
    return r.json()


class TestTopicQuiz:
    def test_success(self, client, upstream):
        upstream.response = completion(make_questions(3))
        r = client.post(BASE_URL, json={"topic": "The Sermon on the Mount", "question_count": 3})
        assert r.status_code == 200
        body = r.json()
        assert body["source"] == "generated"
        assert body["error_code"] is None
        assert body["total_questions"] == 3
        assert body["questions"][0] == {
            "question": "Question 1?",
            "options": ["A", "B", "C", "D"],
            "correct_answer": 1,
        }
        assert "Topic: The Sermon on the Mount" in upstream.prompt()

    def test_extra_questions_truncated(self, client, upstream):
        upstream.response = completion(make_questions(8))
        r = client.post(BASE_URL, json={"topic": "Faith", "question_count": 5})
        assert r.json()["total_questions"] == 5

    def test_blank_topic(self, client, upstream):
        r = client.post(BASE_URL, json={"topic": "   "})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "QUIZ_INVALID_INPUT"
        assert body["details"]["kind"] == "invalid_input"
        assert upstream.requests == []

    def test_topic_with_selectors_rejected(self, client, upstream):
        r = client.post(BASE_URL, json={"topic": "Faith", "categories": [1]})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("count", [0, 21])
    def test_question_count_bounds(self, client, upstream, count):
        r = client.post(BASE_URL, json={"topic": "Faith", "question_count": count})
        assert r.status_code == 422


class TestImpressionQuiz:
    def test_uses_all_impressions_with_labels(self, client, upstream):
        client.get("/categories")
        add_impression(client, "Felt peace during prayer", [1])
        add_impression(client, "Service project joy", [2])
        r = client.post(BASE_URL, json={})
        assert r.status_code == 200
        prompt = upstream.prompt()
        assert "Felt peace during prayer (Categories: Church)" in prompt
        assert "Service project joy (Categories: BYU)" in prompt

    def test_category_selection(self, client, upstream):
        client.get("/categories")
        add_impression(client, "Felt peace during prayer", [1])
        add_impression(client, "Service project joy", [2])
        client.post(BASE_URL, json={"categories": [2]})
        prompt = upstream.prompt()
        assert "Service project joy" in prompt
        assert "Felt peace during prayer" not in prompt

    def test_impression_id_selection(self, client, upstream):
        first = add_impression(client, "First entry")
        add_impression(client, "Second entry")
        client.post(BASE_URL, json={"impression_ids": [first["id"]]})
        prompt = upstream.prompt()
        assert "1. First entry (Categories: None)" in prompt
        assert "Second entry" not in prompt

    def test_no_impressions(self, client, upstream):
        r = client.post(BASE_URL, json={})
        assert r.status_code == 422
        assert r.json()["code"] == "QUIZ_INVALID_INPUT"
        assert upstream.requests == []


class TestFailures:
    def test_not_configured(self, client, upstream):
        upstream.api_key = None
        r = client.post(BASE_URL, json={"topic": "Faith"})
        assert r.status_code == 503
        body = r.json()
        assert body["code"] == "QUIZ_NOT_CONFIGURED"
        assert body["details"]["kind"] == "configuration_missing"
        assert upstream.requests == []

    def test_unavailable_after_retries(self, client, upstream):
        upstream.response = httpx.Response(503)
        r = client.post(BASE_URL, json={"topic": "Faith"})
        assert r.status_code == 503
        body = r.json()
        assert body["code"] == "QUIZ_SERVICE_UNAVAILABLE"
        assert body["details"]["attempts"] == 3
        assert len(upstream.requests) == 3

    def test_rate_limited(self, client, upstream):
        upstream.response = httpx.Response(429)
        r = client.post(BASE_URL, json={"topic": "Faith"})
        assert r.status_code == 429
        assert r.json()["code"] == "QUIZ_RATE_LIMITED"

    def test_upstream_rejection(self, client, upstream):
        upstream.response = httpx.Response(401)
        r = client.post(BASE_URL, json={"topic": "Faith"})
        assert r.status_code == 502
        assert r.json()["code"] == "QUIZ_UPSTREAM_ERROR"
        assert len(upstream.requests) == 1

    def test_malformed(self, client, upstream):
        items = make_questions(5)
        items[0]["correctAnswer"] = 7
        upstream.response = completion(items)
        r = client.post(BASE_URL, json={"topic": "Faith"})
        assert r.status_code == 502
        body = r.json()
        assert body["code"] == "QUIZ_MALFORMED_RESPONSE"
        assert body["details"]["index"] == 0

    def test_fallback_questions(self, client, upstream):
        upstream.response = httpx.Response(503)
        r = client.post(BASE_URL, json={"topic": "Faith", "fallback": True})
        assert r.status_code == 200
        body = r.json()
        assert body["source"] == "fallback"
        assert body["error_code"] == "QUIZ_SERVICE_UNAVAILABLE"
        assert body["total_questions"] == 3
        assert len(body["questions"]) == 3

    def test_fallback_respects_count(self, client, upstream):
        upstream.api_key = None
        r = client.post(BASE_URL, json={"topic": "Faith", "question_count": 2, "fallback": True})
        body = r.json()
        assert body["total_questions"] == 2
        assert body["error_code"] == "QUIZ_NOT_CONFIGURED"
