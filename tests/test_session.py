"""
Tests for SessionContext and LocalSessionCache.
"""

import asyncio
import json

import pytest

from auth import TokenIdentityProvider, create_access_token
from services.session import LocalSessionCache, SessionContext


class FakeAuth:
    def __init__(self, session=None):
        self.session = session
        self.listeners = []
        self.signed_out = False

    async def get_session(self):
        return self.session

    async def sign_out(self):
        self.signed_out = True

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    def emit(self, event, session=None):
        for callback in list(self.listeners):
            callback(event, session)


@pytest.fixture
def visited():
    return []


def _session(user_id="u-1", email="ana@clube.org"):
    return {"user": {"id": user_id, "email": email}}


class TestInitialize:
    def test_session_user_is_cached(self, visited):
        cache = LocalSessionCache()
        ctx = SessionContext(FakeAuth(_session()), cache, visited.append)

        asyncio.run(ctx.initialize("/orders"))

        assert ctx.is_authenticated
        assert ctx.user_id == "u-1"
        assert json.loads(cache.get("user")) == {"email": "ana@clube.org", "id": "u-1"}
        assert visited == []

    def test_restores_user_from_cache(self, visited):
        cache = LocalSessionCache()
        cache.set("user", json.dumps({"email": "b@clube.org", "id": "u-2"}))
        ctx = SessionContext(FakeAuth(None), cache, visited.append)

        asyncio.run(ctx.initialize("/kitchen"))

        assert ctx.user_id == "u-2"
        assert visited == []

    def test_redirects_to_login_when_anonymous(self, visited):
        ctx = SessionContext(FakeAuth(None), LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize("/orders"))
        assert visited == ["/login"]

    @pytest.mark.parametrize("path", ["/login", "/reset-password"])
    def test_public_pages_do_not_redirect(self, visited, path):
        ctx = SessionContext(FakeAuth(None), LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize(path))
        assert visited == []

    def test_invitation_token_does_not_redirect(self, visited):
        ctx = SessionContext(FakeAuth(None), LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize("/", {"token_hash": "abc", "type": "invite"}))
        assert visited == []

    def test_token_with_other_type_redirects(self, visited):
        ctx = SessionContext(FakeAuth(None), LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize("/", {"token_hash": "abc", "type": "magiclink"}))
        assert visited == ["/login"]

    def test_corrupted_cache_is_discarded(self, visited):
        cache = LocalSessionCache()
        cache.set("user", "{not json")
        ctx = SessionContext(FakeAuth(None), cache, visited.append)

        asyncio.run(ctx.initialize("/"))

        assert cache.get("user") is None
        assert visited == ["/login"]


class TestAuthListener:
    def test_signed_out_clears_and_redirects(self, visited):
        auth = FakeAuth(_session())
        cache = LocalSessionCache()
        ctx = SessionContext(auth, cache, visited.append)
        asyncio.run(ctx.initialize("/"))
        ctx.setup_auth_listener()

        auth.emit("SIGNED_OUT")

        assert not ctx.is_authenticated
        assert cache.get("user") is None
        assert visited == ["/login"]

    def test_other_events_refresh_user(self, visited):
        auth = FakeAuth(None)
        cache = LocalSessionCache()
        ctx = SessionContext(auth, cache, visited.append)
        ctx.setup_auth_listener()

        auth.emit("SIGNED_IN", _session("u-9", "z@clube.org"))

        assert ctx.user_id == "u-9"
        assert json.loads(cache.get("user"))["email"] == "z@clube.org"

    def test_teardown_unsubscribes(self, visited):
        auth = FakeAuth(_session())
        ctx = SessionContext(auth, LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize("/"))
        ctx.setup_auth_listener()

        ctx.teardown()
        auth.emit("SIGNED_OUT")

        assert auth.listeners == []
        assert ctx.current_user is None
        assert visited == []


def test_logout(visited):
    auth = FakeAuth(_session())
    cache = LocalSessionCache()
    ctx = SessionContext(auth, cache, visited.append)
    asyncio.run(ctx.initialize("/"))

    asyncio.run(ctx.logout())

    assert auth.signed_out
    assert ctx.current_user is None
    assert cache.get("user") is None
    assert visited == ["/login"]


def test_file_cache_survives_reload(tmp_path):
    path = str(tmp_path / "session.json")
    LocalSessionCache(path).set("user", '{"id": "u-1"}')

    reloaded = LocalSessionCache(path)
    assert reloaded.get("user") == '{"id": "u-1"}'

    reloaded.remove("user")
    assert LocalSessionCache(path).get("user") is None


class TestTokenIdentityProvider:
    def test_session_from_token(self, visited):
        token = create_access_token({"sub": "u-7", "email": "caixa@clube.org"})
        ctx = SessionContext(TokenIdentityProvider(token), LocalSessionCache(), visited.append)

        asyncio.run(ctx.initialize("/"))

        assert ctx.current_user == {"email": "caixa@clube.org", "id": "u-7"}
        assert visited == []

    def test_invalid_token_means_no_session(self, visited):
        ctx = SessionContext(TokenIdentityProvider("lixo"), LocalSessionCache(), visited.append)
        asyncio.run(ctx.initialize("/"))
        assert visited == ["/login"]

    def test_sign_in_and_out_reach_the_listener(self, visited):
        provider = TokenIdentityProvider()
        ctx = SessionContext(provider, LocalSessionCache(), visited.append)
        ctx.setup_auth_listener()

        asyncio.run(provider.sign_in(create_access_token({"sub": "u-8"})))
        assert ctx.user_id == "u-8"

        asyncio.run(ctx.logout())
        assert ctx.current_user is None
        assert provider.token is None
        assert visited == ["/login", "/login"]
