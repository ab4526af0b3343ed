"""Tests for cheetah.routing.router — per-method trie router."""

import pytest

from cheetah.errors import ConfigurationError
from cheetah.routing.route import RouteOptions, SegmentKind
from cheetah.routing.router import Router, parse_path


def _handler(c: object) -> str:
    return "ok"


def _other(c: object) -> str:
    return "other"


class TestParsePath:
    def test_literal(self) -> None:
        segments = parse_path("/users")
        assert len(segments) == 1
        assert segments[0].value == "users"
        assert segments[0].kind is SegmentKind.LITERAL

    def test_multi_literal(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]

    def test_param(self) -> None:
        segments = parse_path("/users/:id")
        assert segments[1].kind is SegmentKind.PARAM
        assert segments[1].name == "id"

    def test_wildcard(self) -> None:
        segments = parse_path("/files/*")
        assert segments[1].kind is SegmentKind.WILDCARD
        assert segments[1].name == "*"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_wildcard_must_be_last(self) -> None:
        with pytest.raises(ConfigurationError, match="final segment"):
            parse_path("/files/*/meta")

    def test_empty_param_name(self) -> None:
        with pytest.raises(ConfigurationError, match="Empty parameter"):
            parse_path("/users/:")


class TestRouterLiteralRoutes:
    def test_root(self) -> None:
        router = Router()
        router.add("GET", "/", _handler)
        router.compile()
        match = router.match("GET", "/")
        assert match is not None
        assert match.route.path == "/"
        assert match.params == {}

    def test_empty_path_is_root(self) -> None:
        router = Router()
        router.add("GET", "/", _handler)
        router.compile()
        assert router.match("GET", "") is not None

    def test_nested(self) -> None:
        router = Router()
        router.add("GET", "/api/v1/users", _handler)
        router.compile()
        assert router.match("GET", "/api/v1/users") is not None
        assert router.match("GET", "/api/v1") is None

    def test_trailing_slash_ignored(self) -> None:
        router = Router()
        router.add("GET", "/users", _handler)
        router.compile()
        assert router.match("GET", "/users/") is not None

    def test_unregistered_returns_none(self) -> None:
        router = Router()
        router.add("GET", "/users", _handler)
        router.compile()
        assert router.match("GET", "/missing") is None
        assert router.match("POST", "/users") is None


class TestRouterParams:
    def test_param_captured(self) -> None:
        router = Router()
        router.add("GET", "/users/:id", _handler)
        router.compile()
        match = router.match("GET", "/users/42")
        assert match is not None
        assert match.params == {"id": "42"}

    def test_param_url_decoded(self) -> None:
        router = Router()
        router.add("GET", "/tags/:name", _handler)
        router.compile()
        match = router.match("GET", "/tags/hello%20world")
        assert match is not None
        assert match.params == {"name": "hello world"}

    def test_param_decoded_once(self) -> None:
        router = Router()
        router.add("GET", "/files/:name", _handler)
        router.compile()
        match = router.match("GET", "/files/100%2525")
        assert match is not None
        assert match.params == {"name": "100%25"}

    def test_encoded_slash_stays_in_segment(self) -> None:
        router = Router()
        router.add("GET", "/files/:name", _handler)
        router.compile()
        match = router.match("GET", "/files/a%2Fb")
        assert match is not None
        assert match.params == {"name": "a/b"}

    def test_multiple_params(self) -> None:
        router = Router()
        router.add("GET", "/users/:user/posts/:post", _handler)
        router.compile()
        match = router.match("GET", "/users/ada/posts/7")
        assert match is not None
        assert match.params == {"user": "ada", "post": "7"}

    def test_literal_beats_param(self) -> None:
        router = Router()
        router.add("GET", "/users/me", _other)
        router.add("GET", "/users/:id", _handler)
        router.compile()
        match = router.match("GET", "/users/me")
        assert match is not None
        assert match.route.handlers == (_other,)
        assert match.params == {}

    def test_backtracks_when_literal_has_no_method(self) -> None:
        router = Router()
        router.add("POST", "/users/me", _other)
        router.add("GET", "/users/:id", _handler)
        router.compile()
        match = router.match("GET", "/users/me")
        assert match is not None
        assert match.params == {"id": "me"}

    def test_param_names_resolved_per_route(self) -> None:
        router = Router()
        router.add("GET", "/items/:id", _handler)
        router.add("DELETE", "/items/:item_id", _other)
        router.compile()
        assert router.match("GET", "/items/1").params == {"id": "1"}
        assert router.match("DELETE", "/items/1").params == {"item_id": "1"}


class TestRouterWildcard:
    def test_wildcard_consumes_rest(self) -> None:
        router = Router()
        router.add("GET", "/static/*", _handler)
        router.compile()
        match = router.match("GET", "/static/css/app.css")
        assert match is not None
        assert match.params == {"*": "css/app.css"}

    def test_wildcard_needs_one_segment(self) -> None:
        router = Router()
        router.add("GET", "/static/*", _handler)
        router.compile()
        assert router.match("GET", "/static") is None

    def test_literal_preferred_over_wildcard(self) -> None:
        router = Router()
        router.add("GET", "/static/*", _handler)
        router.add("GET", "/static/index", _other)
        router.compile()
        assert router.match("GET", "/static/index").route.handlers == (_other,)

    def test_param_and_wildcard(self) -> None:
        router = Router()
        router.add("GET", "/repos/:name/*", _handler)
        router.compile()
        match = router.match("GET", "/repos/cheetah/src/app.py")
        assert match.params == {"name": "cheetah", "*": "src/app.py"}


class TestRouterMethods:
    def test_head_falls_back_to_get(self) -> None:
        router = Router()
        router.add("GET", "/page", _handler)
        router.compile()
        match = router.match("HEAD", "/page")
        assert match is not None
        assert match.route.method == "GET"

    def test_explicit_head_wins(self) -> None:
        router = Router()
        router.add("GET", "/page", _handler)
        router.add("HEAD", "/page", _other)
        router.compile()
        assert router.match("HEAD", "/page").route.method == "HEAD"

    def test_options_without_preflight(self) -> None:
        router = Router()
        router.add("POST", "/submit", _handler)
        router.compile()
        assert router.match("OPTIONS", "/submit") is None

    def test_options_with_preflight(self) -> None:
        router = Router()
        router.add("POST", "/submit", _handler)
        router.compile()
        match = router.match("OPTIONS", "/submit", allow_preflight=True)
        assert match is not None
        assert match.route.method == "POST"

    def test_method_case_insensitive(self) -> None:
        router = Router()
        router.add("get", "/x", _handler)
        router.compile()
        assert router.match("GET", "/x") is not None


class TestRouterRegistration:
    def test_options_record_kept(self) -> None:
        router = Router()
        options = RouteOptions(cors="*")
        route = router.add("GET", "/x", options, _handler)
        assert route.options is options
        assert route.handlers == (_handler,)

    def test_options_must_be_first(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="first item"):
            router.add("GET", "/x", _handler, RouteOptions())

    def test_needs_a_handler(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="at least one handler"):
            router.add("GET", "/x", RouteOptions())

    def test_duplicate_route(self) -> None:
        router = Router()
        router.add("GET", "/x", _handler)
        with pytest.raises(ConfigurationError, match="Duplicate"):
            router.add("GET", "/x", _other)

    def test_no_add_after_compile(self) -> None:
        router = Router()
        router.compile()
        with pytest.raises(ConfigurationError, match="after compilation"):
            router.add("GET", "/x", _handler)

    def test_routes_listing(self) -> None:
        router = Router()
        router.add("GET", "/a", _handler)
        router.add("POST", "/a/:id", _handler)
        router.add("GET", "/files/*", _handler)
        assert {(r.method, r.path) for r in router.routes} == {
            ("GET", "/a"),
            ("POST", "/a/:id"),
            ("GET", "/files/*"),
        }
