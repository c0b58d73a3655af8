import httpx
import pytest

from crdo.core.auth import SupabaseIdentityResolver
from crdo.core.exceptions import AuthenticationError, DependencyError


def resolver(handler):
    return SupabaseIdentityResolver(
        "https://project.supabase.co/",
        "service-key",
        transport=httpx.MockTransport(handler),
    )


def test_valid_token_resolves_user():
    def handler(request):
        assert request.url.path == "/auth/v1/user"
        assert request.headers["Authorization"] == "Bearer good"
        assert request.headers["apikey"] == "service-key"
        return httpx.Response(200, json={"id": "abc", "email": "a@example.com"})

    user = resolver(handler).resolve("good")
    assert user.id == "abc"
    assert user.email == "a@example.com"


def test_rejected_token_is_unauthorized():
    r = resolver(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))
    with pytest.raises(AuthenticationError):
        r.resolve("bad")


def test_empty_token_is_unauthorized_without_a_call():
    def handler(request):
        raise AssertionError("should not be called")

    with pytest.raises(AuthenticationError):
        resolver(handler).resolve("")


def test_unreachable_provider_is_a_dependency_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DependencyError):
        resolver(handler).resolve("good")
