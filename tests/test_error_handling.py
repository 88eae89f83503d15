"""Tests for error classification, the HTTP client's retry policy and error recovery."""

import json
from unittest.mock import Mock, patch

import httpx
import pytest
from hypothesis import given, settings, strategies as st

from gameshelf.services import HttpClientService
from gameshelf.services.errors import (
    AppError,
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    GameNotFoundError,
    NetworkError,
    StorageError,
    ValidationError,
    classify_exception,
    get_error_service,
)


def make_client(handler, max_retries: int = 2) -> HttpClientService:
    return HttpClientService(
        timeout=1.0,
        max_retries=max_retries,
        base_delay=0,
        rate_limit_delay=0,
        transport=httpx.MockTransport(handler),
    )


class TestErrorClassification:
    """Standard exceptions are turned into categorized, user-facing errors."""

    @given(
        error=st.sampled_from([
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            httpx.RequestError("broken"),
            json.JSONDecodeError("bad", "{", 0),
            FileNotFoundError("missing"),
            PermissionError("denied"),
            ValueError("bad value"),
            TypeError("bad type"),
            RuntimeError("boom"),
        ]),
        operation=st.text(min_size=1, max_size=20),
    )
    @settings(max_examples=50)
    def test_every_error_gets_a_message_and_category(self, error: Exception, operation: str) -> None:
        service = ErrorHandlingService()

        user_error = service.handle_error(error, operation=operation, component="test")

        assert user_error.message
        assert user_error.category in ErrorCategory
        assert user_error.recoverable is True
        assert len(service.get_recent_errors()) == 1

    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (httpx.ConnectError("refused"), ErrorCategory.NETWORK),
            (httpx.ReadTimeout("slow"), ErrorCategory.NETWORK),
            (json.JSONDecodeError("bad", "{", 0), ErrorCategory.VALIDATION),
            (PermissionError("denied"), ErrorCategory.STORAGE),
            (ValueError("bad"), ErrorCategory.VALIDATION),
            (RuntimeError("boom"), ErrorCategory.UNEXPECTED),
        ],
    )
    def test_categories(self, error: Exception, category: ErrorCategory) -> None:
        user_error = ErrorHandlingService().handle_error(error, "op", "test")
        assert user_error.category is category

    def test_http_status_error_message(self) -> None:
        request = httpx.Request("POST", "https://api.igdb.com/v4/games")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("Too many", request=request, response=response)

        user_error = ErrorHandlingService().handle_error(error, "search", "test")

        assert user_error.category is ErrorCategory.NETWORK
        assert "Too many requests" in user_error.message

    def test_app_errors_pass_through(self) -> None:
        error = GameNotFoundError(1942)

        user_error = ErrorHandlingService().handle_error(error, "open_game", "test")

        assert user_error.category is ErrorCategory.NOT_FOUND
        assert user_error.severity is ErrorSeverity.WARNING
        assert "1942" in user_error.message

    def test_configuration_error_is_not_recoverable(self) -> None:
        error = ConfigurationError("IGDB API credentials are not configured", setting="igdb_client_id")

        assert error.category is ErrorCategory.CONFIGURATION
        assert error.severity is ErrorSeverity.CRITICAL
        assert not error.recoverable
        assert any("IGDB_CLIENT_ID" in action for action in error.suggested_actions)

    def test_error_subclasses(self) -> None:
        assert NetworkError("x", status_code=503).status_code == 503
        assert AuthenticationError("x", status_code=401).category is ErrorCategory.AUTHENTICATION
        assert StorageError("x", path="/tmp/a").severity is ErrorSeverity.WARNING
        assert ValidationError("x", field="f").field == "f"
        assert isinstance(GameNotFoundError(1), AppError)

    def test_technical_details(self) -> None:
        cause = httpx.ConnectError("refused")
        error = NetworkError("Could not reach IGDB", original_error=cause, url="https://api.igdb.com/v4/games")

        assert error.technical_details == "Url: https://api.igdb.com/v4/games\nConnectError: refused"
        assert GameNotFoundError(7).technical_details == "Game id: 7"
        assert AppError("plain").technical_details is None

    def test_rate_limit_suggestions(self) -> None:
        assert "Wait a few seconds before searching again" in NetworkError("x", status_code=429).suggested_actions
        assert "Try again later" in NetworkError("x", status_code=503).suggested_actions
        assert NetworkError("x").suggested_actions == ["Check your internet connection", "Try again in a few moments"]

    def test_classify_exception_uses_context(self) -> None:
        error = classify_exception(PermissionError("denied"), {"path": "/tmp/storage.json"})

        assert isinstance(error, StorageError)
        assert error.path == "/tmp/storage.json"
        assert error.suggested_actions[0] == "Check permissions on the storage file"

    def test_user_message_with_suggestions(self) -> None:
        service = ErrorHandlingService()
        user_error = service.handle_error(ConfigurationError("No credentials"), "search", "test")

        message = service.create_user_message(user_error, include_suggestions=True)

        assert message.startswith("No credentials")
        assert "Suggested actions:" in message
        assert service.create_user_message(user_error, include_suggestions=False) == "No credentials"

    def test_history_is_bounded(self) -> None:
        service = ErrorHandlingService(max_history_size=3)
        for i in range(5):
            service.handle_error(ValueError(str(i)), "op", "test")

        recent = service.get_recent_errors(count=10)

        assert [e.message for e in recent] == ["2", "3", "4"]
        assert service.get_error_count_by_category() == {ErrorCategory.VALIDATION: 3}

    def test_global_service_is_shared(self) -> None:
        assert get_error_service() is get_error_service()


class TestHttpClientErrorHandling:
    @pytest.mark.asyncio
    async def test_network_error_raised_after_retries(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("Connection failed", request=request)

        client = make_client(handler)

        with pytest.raises(httpx.ConnectError):
            await client.post("https://example.com/games", content="fields *;")

        assert calls == 3
        await client.close()

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(400, json={"message": "Syntax error"})

        client = make_client(handler)

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.post("https://example.com/games", content="nonsense")

        assert exc_info.value.response.status_code == 400
        assert calls == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self) -> None:
        responses = iter([httpx.Response(502), httpx.Response(200, json=[{"id": 1}])])
        client = make_client(lambda request: next(responses))

        response = await client.post("https://example.com/games", content="fields id;")

        assert response.json() == [{"id": 1}]
        await client.close()

    @pytest.mark.asyncio
    async def test_rate_limiting_honours_retry_after(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls <= 2:
                return httpx.Response(429, headers={"Retry-After": "0.01"})
            return httpx.Response(200, content=b"ok")

        client = make_client(handler)

        response = await client.post("https://example.com/games", content="fields id;")

        assert response.status_code == 200
        assert calls == 3
        await client.close()

    @pytest.mark.asyncio
    async def test_form_data_and_headers_are_sent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        client = make_client(handler)
        await client.post("https://example.com/token", data={"grant_type": "client_credentials"}, headers={"X-Test": "1"})

        assert seen[0].content == b"grant_type=client_credentials"
        assert seen[0].headers["X-Test"] == "1"
        assert seen[0].headers["User-Agent"].startswith("gameshelf/")
        await client.close()

    @pytest.mark.asyncio
    async def test_failures_are_logged_with_details(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection failed", request=request)

        client = make_client(handler, max_retries=0)

        with patch("gameshelf.services.http_client.log") as mock_logger:
            with pytest.raises(httpx.ConnectError):
                await client.post("https://example.com/games")

            warning_calls = mock_logger.warning.call_args_list
            assert warning_calls
            assert all("url" in call.kwargs and "error_type" in call.kwargs for call in warning_calls)

        await client.close()

    @pytest.mark.parametrize(("header", "expected"), [("2", 2.0), ("abc", None), (None, None)])
    def test_parse_retry_after(self, header: str | None, expected: float | None) -> None:
        response = Mock()
        response.headers = {"retry-after": header} if header is not None else {}

        assert HttpClientService._parse_retry_after(response) == expected
