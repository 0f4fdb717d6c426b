"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
from hgtracker.core.errors import (
    CategoryNotFoundError,
    CategoryNotRemovableError,
    ImpressionInFutureError,
    ImpressionNotFoundError,
    MalformedResponseError,
    QuizConfigurationError,
    QuizErrorKind,
    QuizInputError,
    TransientServiceError,
    UnknownCategoryError,
    UpstreamServiceError,
)


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_impression_not_found(self):
        err = ImpressionNotFoundError("abc123")
        assert err.http_status == 404
        assert err.code == "IMPRESSION_NOT_FOUND"
        assert "abc123" in err.message
        assert err.to_dict()["details"] == {"id": "abc123"}

    def test_impression_in_future(self):
        err = ImpressionInFutureError(date_time="2030-01-01T00:00:00+00:00")
        assert err.http_status == 422
        assert err.code == "IMPRESSION_IN_FUTURE"
        assert err.details["date_time"] == "2030-01-01T00:00:00+00:00"

    def test_category_not_found(self):
        err = CategoryNotFoundError(7)
        assert err.http_status == 404
        assert err.code == "CATEGORY_NOT_FOUND"

    def test_unknown_category(self):
        err = UnknownCategoryError([5, 9])
        assert err.http_status == 422
        assert "5, 9" in err.message
        assert err.to_dict()["details"]["missing"] == [5, 9]

    def test_category_not_removable(self):
        err = CategoryNotRemovableError(1, action="deleted")
        assert err.http_status == 409
        assert err.code == "CATEGORY_NOT_REMOVABLE"
        assert "cannot be deleted" in err.message


class TestQuizErrors:
    def test_configuration_missing(self):
        err = QuizConfigurationError()
        assert err.kind == QuizErrorKind.configuration_missing
        assert err.http_status == 503
        assert err.retryable is False
        d = err.to_dict()
        assert d["code"] == "QUIZ_NOT_CONFIGURED"
        assert d["details"] == {"setting": "OPENAI_API_KEY", "kind": "configuration_missing"}

    def test_invalid_input_without_details(self):
        err = QuizInputError("No impressions provided.")
        assert err.http_status == 422
        assert err.to_dict() == {
            "code": "QUIZ_INVALID_INPUT",
            "message": "No impressions provided.",
            "details": {"kind": "invalid_input"},
        }

    def test_rate_limited(self):
        err = TransientServiceError(QuizErrorKind.rate_limited, "slow down", status_code=429, attempts=3)
        assert err.http_status == 429
        assert err.code == "QUIZ_RATE_LIMITED"
        assert err.retryable is True
        assert err.details == {"status_code": 429, "attempts": 3}

    def test_service_unavailable(self):
        err = TransientServiceError(QuizErrorKind.service_unavailable, "down")
        assert err.http_status == 503
        assert err.code == "QUIZ_SERVICE_UNAVAILABLE"
        assert err.details == {}

    def test_malformed_response(self):
        err = MalformedResponseError("bad item", index=4)
        assert err.http_status == 502
        assert err.kind == QuizErrorKind.malformed_response
        assert err.details == {"index": 4}
        assert MalformedResponseError("not json").details == {}

    def test_upstream_error(self):
        err = UpstreamServiceError(401, "Unauthorized")
        assert err.http_status == 502
        assert err.kind == QuizErrorKind.upstream_error
        assert err.retryable is False
        assert "401 Unauthorized" in err.message

    def test_kinds_are_distinct(self):
        assert len({k.value for k in QuizErrorKind}) == 6


# ---------------------------------------------------------------------------
# Envelope over HTTP
# ---------------------------------------------------------------------------

class TestErrorEnvelope:
    def test_not_found_envelope(self, client):
        r = client.get("/impressions/missing")
        assert r.status_code == 404
        body = r.json()
        assert set(body) == {"code", "message", "details"}

    def test_validation_envelope(self, client):
        r = client.post("/impressions", json={"description": "x", "categories": ["a"]})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["message"] == "Request validation failed."
        error = body["details"]["errors"][0]
        assert error["field"] == "categories.0"
        assert error["type"] == "int_parsing"

    def test_query_validation_field(self, client):
        r = client.get("/impressions", params={"category": "abc"})
        assert r.status_code == 422
        assert r.json()["details"]["errors"][0]["field"].startswith("query.category")
