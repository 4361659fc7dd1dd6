"""Tests for psa.framework.request."""

from psa.framework.logging import get_context
from psa.framework.request import RequestInfo, current_request, request_scope


class TestRequestScope:
    def test_no_request_outside_scope(self):
        assert current_request() is None

    def test_scope_sets_request(self):
        with request_scope("/user/edit/7", client_ip="10.0.0.1", user_agent="pytest") as info:
            assert current_request() is info
            assert info.path == "/user/edit/7"
            assert info.client_ip == "10.0.0.1"
            assert len(info.request_id) == 32
        assert current_request() is None

    def test_request_id_in_log_context(self):
        with request_scope("/", request_id="req-1"):
            assert get_context().request_id == "req-1"
        assert get_context().request_id is None

    def test_each_scope_gets_fresh_id(self):
        with request_scope("/a") as first:
            pass
        with request_scope("/b") as second:
            pass
        assert first.request_id != second.request_id

    def test_nested_scopes_restore(self):
        with request_scope("/outer") as outer:
            with request_scope("/inner"):
                assert current_request().path == "/inner"
            assert current_request() is outer

    def test_request_info_defaults(self):
        info = RequestInfo()
        assert info.path is None
        assert info.request_id
