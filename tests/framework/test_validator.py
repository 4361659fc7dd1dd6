"""Tests for psa.framework.validator.Validator."""

import pytest

from psa.core.errors import ValidationError
from psa.framework.validator import Validator


@pytest.fixture
def v():
    return Validator()


@pytest.fixture
def collector():
    return Validator(raise_errors=False)


class TestRequiredOptional:
    def test_required_passes(self, v):
        assert v.required("12", "int") is True
        assert v.required(12, "int") is True

    def test_required_failure_raises(self, v):
        with pytest.raises(ValidationError) as exc_info:
            v.required("abc", "int")
        err = exc_info.value
        assert str(err) == "abc is not an int"
        assert err.value == "abc"
        assert err.constraint == "int"

    def test_required_empty(self, v):
        with pytest.raises(ValidationError, match=r"^Value for int is required\.$"):
            v.required("", "int")

    def test_required_empty_with_custom_message(self, v):
        with pytest.raises(ValidationError, match=r"^Value for int is required\. Age please$"):
            v.required(None, "int", "Age please")

    def test_optional_empty_passes(self, v):
        assert v.optional("", "int") is True
        assert v.optional(None, "email") is True
        assert v.optional([], "alpha_array") is True

    def test_optional_still_checks_value(self, v):
        with pytest.raises(ValidationError):
            v.optional("x", "int")

    def test_unknown_check(self, v):
        with pytest.raises(ValidationError, match=r"Undefined validation method check_unicorn\(\)"):
            v.required("x", "unicorn")


class TestMessages:
    def test_custom_message(self, v):
        with pytest.raises(ValidationError, match="^Age must be a number$"):
            v.required("abc", "int", "Age must be a number")

    def test_params_in_message(self, v):
        with pytest.raises(ValidationError, match="^50 is not in between 1 and 10$"):
            v.required(50, "between", 1, 10)

    def test_custom_message_after_params(self, v):
        with pytest.raises(ValidationError, match="^Out of range$"):
            v.required(50, "between", 1, 10, "Out of range")

    def test_default_param_shown(self, v):
        with pytest.raises(ValidationError, match="^02.30.2024 is not a valid date in format mm.dd.yyyy$"):
            v.required("02.30.2024", "date")

    def test_type_param_shown_by_name(self, v):
        with pytest.raises(ValidationError, match="^Value is not an instance of int$"):
            v.required("7", "instanceof", int)

    def test_list_param_shown(self, v):
        with pytest.raises(ValidationError, match=r"^x is not in valid values$"):
            v.required("x", "invalues", ["a", "b"])


class TestCollecting:
    def test_errors_collected(self, collector):
        assert collector.required("x", "int") is False
        assert collector.required("y@", "email") is False
        assert collector.required("5", "int") is True
        assert [e.check for e in collector.errors] == ["int", "email"]
        assert collector.errors[0].message == "x is not an int"

    def test_clear_errors(self, collector):
        collector.required("x", "int")
        collector.clear_errors()
        assert collector.errors == []


class TestArrays:
    def test_every_element_checked(self, v):
        assert v.required(["a", "b"], "alpha_array") is True

    def test_element_failure(self, v):
        with pytest.raises(ValidationError, match="^1 does not contain only alpha characters$"):
            v.required(["a", "1"], "alpha_array")

    def test_all_failures_collected(self, collector):
        assert collector.required(["1", "a", "2"], "alpha_array") is False
        assert [e.value for e in collector.errors] == ["1", "2"]

    def test_not_a_list(self, v):
        with pytest.raises(ValidationError, match="is not a list thus cannot validate each element"):
            v.required("abc", "alpha_array")

    def test_optional_skips_empty_elements(self, v):
        assert v.optional(["a", "", None], "alpha_array") is True

    def test_required_rejects_empty_elements(self, v):
        with pytest.raises(ValidationError, match="is required"):
            v.required(["a", ""], "alpha_array")


class TestChecks:
    @pytest.mark.parametrize(
        "check, value, params",
        [
            ("int", "-5", ()),
            ("id", "3", ()),
            ("float", "1.5", ()),
            ("float", 2, ()),
            ("string", "text", ()),
            ("alpha", "abc", ()),
            ("num", "0123", ()),
            ("alphanum", "abc123", ()),
            ("domainsafe", "my-domain", ()),
            ("hostname", "www.example.com", ()),
            ("email", "alice@example.com", ()),
            ("url", "http://example.com", ()),
            ("url", "https://example.com/path/page.html", ()),
            ("ip4", "192.168.1.1", ()),
            ("ip6", "::1", ()),
            ("regex", "abc-123", (r"^[a-z]+-\d+$",)),
            ("between", 5, (1, 10)),
            ("between", "b", ("a", "c")),
            ("lenbetween", "abcd", (2, 5)),
            ("invalues", "b", (["a", "b"],)),
            ("date", "12.31.2024", ()),
            ("date", "31/12/2024", ("dd/mm/yyyy",)),
            ("date", "2024-02-29", ("yyyy-mm-dd",)),
            ("callback", 4, (lambda x: x % 2 == 0,)),
            ("equal", "a", ("a",)),
            ("instanceof", 3, (int,)),
        ],
    )
    def test_passes(self, collector, check, value, params):
        assert collector.required(value, check, *params) is True, collector.errors

    @pytest.mark.parametrize(
        "check, value, params",
        [
            ("int", "1.5", ()),
            ("int", True, ()),
            ("id", "0", ()),
            ("id", "-3", ()),
            ("float", "one", ()),
            ("alpha", "ab1", ()),
            ("num", "12a", ()),
            ("alphanum", "a b", ()),
            ("domainsafe", "my--domain", ()),
            ("domainsafe", "-edge", ()),
            ("domainsafe", "123", ()),
            ("hostname", "-bad.com", ()),
            ("email", "alice@", ()),
            ("url", "not a url", ()),
            ("ip4", "256.1.1.1", ()),
            ("ip6", "1.2.3.4", ()),
            ("regex", "ABC", (r"^[a-z]+$",)),
            ("between", 11, (1, 10)),
            ("between", 5, ()),
            ("lenbetween", "abcdef", (2, 5)),
            ("invalues", "c", (["a", "b"],)),
            ("date", "13.01.2024", ()),
            ("date", "2023-02-29", ("yyyy-mm-dd",)),
            ("date", "12/31/2024", ()),
            ("callback", 3, (lambda x: x % 2 == 0,)),
            ("equal", "a", ("b",)),
            ("instanceof", "3", (int,)),
        ],
    )
    def test_fails(self, collector, check, value, params):
        assert collector.required(value, check, *params) is False


class TestSubclassChecks:
    def test_custom_check_and_message(self):
        class AppValidator(Validator):
            messages = {**Validator.messages, "even": "%v is odd"}

            def check_even(self, value):
                return int(value) % 2 == 0

        v = AppValidator()
        assert v.required(4, "even")
        with pytest.raises(ValidationError, match="^3 is odd$"):
            v.required(3, "even")

    def test_default_messages_read_only(self):
        with pytest.raises(TypeError):
            Validator.messages["int"] = "changed"
        assert Validator().messages["int"] == "%v is not an int"
