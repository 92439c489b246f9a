"""Unit tests for the local and cloud model adapters."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from google.genai import errors as genai_errors

from deskmate.llm import (
    CloudModelAdapter,
    FailureKind,
    LocalModelAdapter,
    NormalizedRequest,
    ProviderKind,
    Turn,
    create_chat_adapter,
    failure_message,
    make_failure,
)


@pytest.fixture
def request_two_turns():
    return NormalizedRequest(
        system_prompt="You are terse.",
        turns=(
            Turn(role="user", content="hi"),
            Turn(role="assistant", content="hello"),
        ),
    )


def ollama_adapter(handler, **kwargs):
    return LocalModelAdapter(base_url="http://ollama.test", transport=httpx.MockTransport(handler), **kwargs)


class TestLocalModelAdapter:
    """Tests for the Ollama adapter."""

    @pytest.mark.asyncio
    async def test_payload_shape(self, request_two_turns):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Sure."}})

        outcome = await ollama_adapter(handler).send(request_two_turns, model_id="llama3")

        assert outcome.ok
        assert outcome.text == "Sure."
        assert seen["path"] == "/api/chat"
        assert seen["body"] == {
            "model": "llama3",
            "stream": False,
            "messages": [
                {"role": "system", "content": "You are terse."},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
            ],
        }

    @pytest.mark.asyncio
    async def test_default_model(self, request_two_turns):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"message": {"content": "ok"}})

        await ollama_adapter(handler, model="phi3").send(request_two_turns)
        assert seen["model"] == "phi3"

    @pytest.mark.asyncio
    async def test_connection_refused_is_service_unavailable(self, request_two_turns):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        outcome = await ollama_adapter(handler).send(request_two_turns)

        assert not outcome.ok
        assert outcome.kind is FailureKind.SERVICE_UNAVAILABLE
        assert outcome.message == "Ollama is not running. Start it with: ollama serve"

    @pytest.mark.asyncio
    async def test_error_body_is_unknown_with_detail(self, request_two_turns):
        def handler(request):
            return httpx.Response(404, json={"error": "model 'nope' not found"})

        outcome = await ollama_adapter(handler).send(request_two_turns, model_id="nope")

        assert outcome.kind is FailureKind.UNKNOWN
        assert outcome.detail == "model 'nope' not found"
        assert "model 'nope' not found" in outcome.message

    @pytest.mark.asyncio
    async def test_empty_reply_is_a_failure(self, request_two_turns):
        def handler(request):
            return httpx.Response(200, json={"message": {"content": ""}})

        outcome = await ollama_adapter(handler).send(request_two_turns)

        assert outcome.kind is FailureKind.UNKNOWN
        assert outcome.detail == "No response from Ollama"

    @pytest.mark.asyncio
    async def test_status_lists_models(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "mistral:latest"}, {"model": "llama3"}]})

        status = await ollama_adapter(handler).status()

        assert status.running
        assert status.models == ["mistral:latest", "llama3"]

    @pytest.mark.asyncio
    async def test_status_when_not_running(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        status = await ollama_adapter(handler).status()

        assert not status.running
        assert status.models == []

    def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434/")
        assert LocalModelAdapter().base_url == "http://gpu-box:11434"


def gemini_response(*texts: str):
    parts = [SimpleNamespace(text=text) for text in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


class FakeGenAI:
    """Stand-in for genai.Client exposing only aio.models.generate_content."""

    def __init__(self, result=None, error: Exception | None = None):
        self.generate_content = AsyncMock(return_value=result, side_effect=error)
        self.aclose = AsyncMock()
        self.aio = SimpleNamespace(models=SimpleNamespace(generate_content=self.generate_content), aclose=self.aclose)
        self.keys: list[str] = []

    def factory(self, api_key: str, timeout_s: float):
        self.keys.append(api_key)
        return self


class TestCloudModelAdapter:
    """Tests for the Gemini adapter."""

    @pytest.fixture(autouse=True)
    def no_env_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    @pytest.mark.asyncio
    async def test_success(self, request_two_turns):
        fake = FakeGenAI(result=gemini_response("Hello", " there"))
        adapter = CloudModelAdapter(client_factory=fake.factory)

        outcome = await adapter.send(request_two_turns, model_id="gemini-2.5-flash", credential="key-1")

        assert outcome.ok
        assert outcome.text == "Hello there"
        assert fake.keys == ["key-1"]

        kwargs = fake.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert [c.role for c in kwargs["contents"]] == ["user", "model"]
        assert kwargs["contents"][1].parts[0].text == "hello"
        assert kwargs["config"].system_instruction == "You are terse."

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_call(self, request_two_turns):
        fake = FakeGenAI(result=gemini_response("unused"))
        adapter = CloudModelAdapter(client_factory=fake.factory)

        outcome = await adapter.send(request_two_turns)

        assert outcome.kind is FailureKind.MISSING_CREDENTIAL
        assert outcome.message == (
            "Gemini API key not found. Please add it in Settings or set GEMINI_API_KEY in your .env file."
        )
        assert fake.keys == []
        fake.generate_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_environment_key_is_used(self, request_two_turns, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        fake = FakeGenAI(result=gemini_response("ok"))

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns)

        assert outcome.ok
        assert fake.keys == ["env-key"]

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            (401, FailureKind.INVALID_CREDENTIAL),
            (403, FailureKind.INVALID_CREDENTIAL),
            (429, FailureKind.RATE_LIMITED),
            (400, FailureKind.UNKNOWN),
        ],
    )
    @pytest.mark.asyncio
    async def test_status_code_mapping(self, request_two_turns, code, kind):
        error = genai_errors.ClientError(code, {"error": {"code": code, "message": "upstream says no"}})
        fake = FakeGenAI(error=error)

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns, credential="k")

        assert outcome.kind is kind
        assert outcome.detail == "upstream says no"

    @pytest.mark.asyncio
    async def test_rate_limit_message(self, request_two_turns):
        error = genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota"}})
        fake = FakeGenAI(error=error)

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns, credential="k")

        assert outcome.message == "Gemini rate limit exceeded. Try again later."

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"message": "<html><body>Too Many Requests</body></html>", "status": "Too Many Requests"},
            {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}},
            [{"error": {"code": 429}}],
        ],
        ids=["empty", "non-json", "no-message", "list"],
    )
    @pytest.mark.asyncio
    async def test_rate_limited_whatever_the_body(self, request_two_turns, body):
        fake = FakeGenAI(error=genai_errors.ClientError(429, body))

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns, credential="k")

        assert outcome.kind is FailureKind.RATE_LIMITED
        assert outcome.message == "Gemini rate limit exceeded. Try again later."

    @pytest.mark.asyncio
    async def test_empty_response_is_unknown(self, request_two_turns):
        fake = FakeGenAI(result=SimpleNamespace(candidates=[], text=None))

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns, credential="k")

        assert outcome.kind is FailureKind.UNKNOWN
        assert outcome.detail == "No response from Gemini"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_classified(self, request_two_turns):
        fake = FakeGenAI(error=RuntimeError("boom"))

        outcome = await CloudModelAdapter(client_factory=fake.factory).send(request_two_turns, credential="k")

        assert outcome.kind is FailureKind.UNKNOWN
        assert outcome.message == "Sorry, I encountered an error: boom"

    @pytest.mark.asyncio
    async def test_status_reflects_credential(self):
        assert not (await CloudModelAdapter().status()).running
        assert (await CloudModelAdapter(api_key="k").status()).running

    @pytest.mark.asyncio
    async def test_client_is_reused_per_credential(self, request_two_turns):
        fake = FakeGenAI(result=gemini_response("hi"))
        adapter = CloudModelAdapter(client_factory=fake.factory)

        await adapter.send(request_two_turns, credential="k1")
        await adapter.send(request_two_turns, credential="k1")
        await adapter.send(request_two_turns, credential="k2")

        assert fake.keys == ["k1", "k2"]
        assert fake.generate_content.await_count == 3

    @pytest.mark.asyncio
    async def test_close_releases_clients(self, request_two_turns):
        fake = FakeGenAI(result=gemini_response("hi"))
        adapter = CloudModelAdapter(client_factory=fake.factory)
        await adapter.send(request_two_turns, credential="k1")
        await adapter.send(request_two_turns, credential="k2")

        await adapter.close()

        assert fake.aclose.await_count == 2

        await adapter.send(request_two_turns, credential="k1")
        assert fake.keys == ["k1", "k2", "k1"]


class TestFailureMessages:
    def test_every_kind_has_a_distinct_message(self):
        messages = {failure_message(kind, provider="X") for kind in FailureKind}
        assert len(messages) == len(FailureKind)

    def test_detail_is_stripped(self):
        failure = make_failure(FailureKind.UNKNOWN, detail="  broken  ")
        assert failure.detail == "broken"
        assert failure.message == "Sorry, I encountered an error: broken"


class TestFactory:
    def test_aliases(self):
        assert isinstance(create_chat_adapter("ollama"), LocalModelAdapter)
        assert isinstance(create_chat_adapter("gemini", api_key="k"), CloudModelAdapter)
        assert isinstance(create_chat_adapter(ProviderKind.CLOUD), CloudModelAdapter)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_chat_adapter("openai")
