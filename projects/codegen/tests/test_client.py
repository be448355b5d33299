"""Tests for the code generation client."""

from typing import Any

import pytest
from requests import ConnectionError as RequestsConnectionError

from canvas import (
    Connection,
    Field,
    Project,
    Table,
    connect,
    source_handle,
    target_handle,
)
from codegen import CodeGenerationRequest, CodeGenerator, load_config
from codegen.client import (
    EMPTY_SCHEMA_ERROR,
    INVALID_SCHEMA_ERROR,
    MISSING_KEY_ERROR,
    ServiceError,
    extract_text,
    request_body,
)


class FakeResponse:
    """Stand-in for a requests response."""

    def __init__(self, payload: Any, status_code: int = 200) -> None:  # noqa: ANN401
        """Initialize with a JSON payload and status."""
        self.payload = payload
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "OK" if self.ok else "Bad Request"

    def json(self) -> Any:  # noqa: ANN401
        """Return the payload."""
        return self.payload


def gemini_payload(text: str) -> dict[str, Any]:
    """Wrap text the way the service returns it."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture(name="project")
def connected_project() -> Project:
    """A project with two connected tables."""
    project = Project("Shop")
    store = project.store
    store.add_table(Table("t-users", "users", fields=(Field("u-id", name="id"),)))
    store.add_table(Table("t-orders", "orders", fields=(Field("o-fk", name="user"),)))
    connect(
        store,
        Connection(
            "t-users",
            source_handle("u-id"),
            "t-orders",
            target_handle("o-fk"),
        ),
    )
    return project


@pytest.fixture(name="request_")
def generation_request(project: Project) -> CodeGenerationRequest:
    """Build a request from the project's export."""
    document = project.export_document()
    return {
        "database_type": "sqlite",
        "schema": document["schema"],
        "edges": document["edges"],
    }


def test_request_body() -> None:
    """Test the payload carries the prompt and generation settings."""
    body = request_body("prompt", load_config()["service"])
    assert body["contents"] == [{"parts": [{"text": "prompt"}]}]
    assert body["generationConfig"]["maxOutputTokens"] == 8192
    assert len(body["safetySettings"]) == 4


def test_extract_text() -> None:
    """Test generated text is pulled from the payload."""
    assert extract_text(gemini_payload("CREATE TABLE x;")) == "CREATE TABLE x;"
    with pytest.raises(ServiceError, match="Invalid response format"):
        extract_text({"candidates": []})
    with pytest.raises(ServiceError, match="Invalid response format"):
        extract_text(gemini_payload(None))  # pyright: ignore[reportArgumentType]


def test_generate_code(
    monkeypatch: pytest.MonkeyPatch,
    request_: CodeGenerationRequest,
) -> None:
    """Test a successful call returns cleaned code."""
    calls: list[dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any) -> FakeResponse:  # noqa: ANN401
        calls.append({"url": url, **kwargs})
        return FakeResponse(gemini_payload("```sql\nCREATE TABLE users (id);\n```"))

    monkeypatch.setattr("codegen.client.post", fake_post)
    response = CodeGenerator(api_key="secret").generate_code(request_)

    assert response == {"success": True, "code": "CREATE TABLE users (id);"}
    assert calls[0]["headers"]["X-goog-api-key"] == "secret"
    prompt = calls[0]["json"]["contents"][0]["parts"][0]["text"]
    assert "Relationship: users_orders (users -> orders, Type: 1:1)" in prompt


def test_missing_key(
    monkeypatch: pytest.MonkeyPatch,
    request_: CodeGenerationRequest,
) -> None:
    """Test no request is made without an API key."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("VITE_GEMINI_API_KEY", raising=False)
    monkeypatch.setattr("codegen.client.post", pytest.fail)

    generator = CodeGenerator()
    assert not generator.is_configured()
    assert generator.generate_code(request_) == {
        "success": False,
        "code": "",
        "error": MISSING_KEY_ERROR,
    }


def test_empty_schema(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test an empty schema is rejected before calling the service."""
    monkeypatch.setattr("codegen.client.post", pytest.fail)
    response = CodeGenerator(api_key="secret").generate_code(
        {"database_type": "sql", "schema": [], "edges": []},
    )
    assert response["error"] == EMPTY_SCHEMA_ERROR


def test_http_error(
    monkeypatch: pytest.MonkeyPatch,
    request_: CodeGenerationRequest,
) -> None:
    """Test a failed HTTP status is reported as an error."""
    monkeypatch.setattr(
        "codegen.client.post",
        lambda *_, **__: FakeResponse({}, status_code=400),
    )
    response = CodeGenerator(api_key="secret").generate_code(request_)
    assert not response["success"]
    assert response.get("error") == "API request failed: 400 Bad Request"


def test_failure_leaves_project_unchanged(
    monkeypatch: pytest.MonkeyPatch,
    project: Project,
    request_: CodeGenerationRequest,
) -> None:
    """Test a transport failure is returned and the graph stays as it was."""

    def broken_post(*_: Any, **__: Any) -> FakeResponse:  # noqa: ANN401
        msg = "connection refused"
        raise RequestsConnectionError(msg)

    monkeypatch.setattr("codegen.client.post", broken_post)
    before = project.store.snapshot

    response = CodeGenerator(api_key="secret").generate_code(request_)

    assert not response["success"]
    assert response.get("error") == "connection refused"
    assert project.store.snapshot is before


def test_malformed_payload(
    monkeypatch: pytest.MonkeyPatch,
    request_: CodeGenerationRequest,
) -> None:
    """Test an unexpected payload is reported as an error."""
    monkeypatch.setattr(
        "codegen.client.post",
        lambda *_, **__: FakeResponse({"unexpected": True}),
    )
    response = CodeGenerator(api_key="secret").generate_code(request_)
    assert response.get("error") == "Invalid response format from Gemini API"


@pytest.mark.parametrize(
    ("schema", "edges"),
    [
        (["x"], []),
        ([{"tableName": "users"}], [None]),
    ],
)
def test_malformed_request(
    monkeypatch: pytest.MonkeyPatch,
    schema: list[Any],
    edges: list[Any],
) -> None:
    """Test non-object tables or edges are reported without calling the service."""
    monkeypatch.setattr("codegen.client.post", pytest.fail)
    response = CodeGenerator(api_key="secret").generate_code(
        {"database_type": "sql", "schema": schema, "edges": edges},
    )
    assert not response["success"]
    assert response.get("error") == INVALID_SCHEMA_ERROR


def test_nested_junk_is_skipped(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test odd field and edge payloads still produce a prompt."""
    prompts: list[str] = []

    def fake_post(_: str, **kwargs: Any) -> FakeResponse:  # noqa: ANN401
        prompts.append(kwargs["json"]["contents"][0]["parts"][0]["text"])
        return FakeResponse(gemini_payload("CREATE TABLE users (id);"))

    monkeypatch.setattr("codegen.client.post", fake_post)
    response = CodeGenerator(api_key="secret").generate_code(
        {
            "database_type": "sql",
            "schema": [
                {"id": "t", "tableName": "users", "fields": ["id", {"name": "x"}]},
            ],
            "edges": [{"source": "t", "target": "t", "data": "1:N"}],
        },
    )
    assert response["success"]
    assert "  - x: None" in prompts[0]
    assert "Relationship: users_users (users -> users, Type: 1:1)" in prompts[0]


def test_incomplete_service_settings(
    monkeypatch: pytest.MonkeyPatch,
    request_: CodeGenerationRequest,
) -> None:
    """Test missing service settings are reported as an error."""
    monkeypatch.setattr("codegen.client.post", pytest.fail)
    config = load_config()
    generator = CodeGenerator(
        api_key="secret",
        config={"service": {}, "dialects": config["dialects"]},  # pyright: ignore[reportArgumentType]
    )
    response = generator.generate_code(request_)
    assert not response["success"]
    assert response.get("error") == "Missing setting: 'endpoint'"
