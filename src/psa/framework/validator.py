"""Value validation with named checks.

Manifesto:
    Controllers must validate request input before it reaches the record
    mapper. A check is a ``check_<name>`` method returning a bool; the
    validator turns a failed check into a :class:`ValidationError` (or a
    collected error when ``raise_errors=False``) with a readable message.

Usage::

    v = Validator()
    v.required(user_id, "id")
    v.optional(email, "email")
    v.required(age, "between", 18, 130)
    v.required(tags, "alpha_array")          # every element must pass

    collector = Validator(raise_errors=False)
    if not collector.required(name, "alphanum"):
        errors = collector.errors

Messages use ``%v`` for the value and ``%p1``, ``%p2`` for check
parameters. A string passed after a check's parameters replaces the
default message.

Subclasses add checks by defining ``check_<name>`` methods and, optionally,
a matching entry in ``messages``.

Tags:
    psa-core, framework, validation, input

Doc-Types:
    api-reference
"""

import inspect
import ipaddress
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any

from psa.core.errors import ValidationError

_EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@(?:[A-Z0-9-]+\.)+[A-Z]{2,64}$", re.IGNORECASE)
_HOSTNAME_RE = re.compile(r"^([a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,64}$")
_URL_RE = re.compile(
    r"^(?:(?:ht|f)tps?://|~/|/)?"
    r"(?:\w+:\w+@)?"
    r"(?:(?:[-\w]+\.)+[a-z]{2,64})"
    r"(?::\d{1,5})?"
    r"(?:(?:(?:/(?:[-\w~!$+|.,=]|%[a-f\d]{2})+)+|/)+|\?|#)?"
    r"(?:\?(?:[-\w~!$+|.,*:]|%[a-f\d]{2})+=(?:[-\w~!$+|.,*:=]|%[a-f\d]{2})*"
    r"(?:&(?:[-\w~!$+|.,*:]|%[a-f\d]{2})+=(?:[-\w~!$+|.,*:=]|%[a-f\d]{2})*)*)?"
    r"(?:#(?:[-\w~!$+|.,*:=]|%[a-f\d]{2})*)?$",
    re.IGNORECASE,
)

DEFAULT_MESSAGES: Mapping[str, str] = MappingProxyType({
    "int": "%v is not an int",
    "id": "%v is not database id",
    "string": "%v is not a string",
    "date": "%v is not a valid date in format %p1",
    "email": "%v is not a valid email",
    "ip4": "%v is not a valid IPv4 address",
    "ip6": "%v is not a valid IPv6 address",
    "float": "%v is not a valid float number",
    "alpha": "%v does not contain only alpha characters",
    "alphanum": "%v does not contain only alphanumeric characters",
    "num": "%v does not contain only numeric characters",
    "regex": "%v does not match pattern %p1",
    "domainsafe": "%v does not contain only domain name safe characters",
    "invalues": "%v is not in valid values",
    "between": "%v is not in between %p1 and %p2",
    "lenbetween": "Length of %v is not in between %p1 and %p2",
    "hostname": "%v is not valid hostname",
    "url": "%v is not valid URL",
    "callback": "%v validation with %p1() failed.",
    "equal": "%v is not equal(==) %p1",
    "instanceof": "Value is not an instance of %p1",
})
DEFAULT_MESSAGE = "Invalid value: %v"
REQUIRED_MESSAGE = "Value for %t is required."


@dataclass
class ValidationFailure:
    """One collected failure."""

    message: str
    value: Any
    check: str


class Validator:
    """Runs named checks and raises or collects failures."""

    # Read-only; subclasses assign their own mapping
    messages: Mapping[str, str] = DEFAULT_MESSAGES

    def __init__(self, raise_errors: bool = True):
        self.raise_errors = raise_errors
        self._errors: list[ValidationFailure] = []

    # ── Public API ───────────────────────────────────────────────────────

    def required(self, value: Any, check: str, *params: Any) -> bool:
        """Validate ``value``; an empty value fails."""
        return self._validate(True, value, check, params)

    def optional(self, value: Any, check: str, *params: Any) -> bool:
        """Validate ``value`` unless it is empty."""
        return self._validate(False, value, check, params)

    @property
    def errors(self) -> list[ValidationFailure]:
        return list(self._errors)

    def clear_errors(self) -> None:
        self._errors.clear()

    # ── Orchestration ────────────────────────────────────────────────────

    def _validate(self, required: bool, value: Any, check: str, params: tuple) -> bool:
        each = check.endswith("_array")
        if each:
            check = check[: -len("_array")]

        if _is_empty(value):
            if not required:
                return True
            return self._fail(self._required_message(check, params), value, check)

        if not each:
            return self._run_check(check, value, params)

        if not isinstance(value, (list, tuple, set, frozenset)):
            return self._fail(f"'{value}' is not a list thus cannot validate each element", value, check)

        ok = True
        for item in value:
            if _is_empty(item):
                if not required:
                    continue
                return self._fail(self._required_message(check, params), item, check)
            if not self._run_check(check, item, params):
                ok = False
        return ok

    def _run_check(self, check: str, value: Any, params: tuple) -> bool:
        method = self._check_method(check)
        if method is None:
            return self._fail(f"Undefined validation method check_{check}()", value, check)

        arity = _param_count(method)
        check_params, custom = params[:arity], params[arity:]
        if method(value, *check_params):
            return True

        custom_message = custom[0] if custom and isinstance(custom[0], str) else None
        message = self._format(
            custom_message or self.messages.get(check, DEFAULT_MESSAGE),
            value,
            _with_defaults(method, check_params),
        )
        return self._fail(message, value, check)

    def _check_method(self, check: str) -> Callable[..., bool] | None:
        method = getattr(self, f"check_{check}", None)
        return method if callable(method) else None

    def _required_message(self, check: str, params: tuple) -> str:
        message = REQUIRED_MESSAGE.replace("%t", check)
        method = self._check_method(check)
        if method is not None:
            custom = params[_param_count(method):]
            if custom and isinstance(custom[0], str):
                message += " " + custom[0]
        return message.strip()

    def _format(self, message: str, value: Any, params: tuple) -> str:
        for i, param in enumerate(params, start=1):
            if isinstance(param, (list, tuple, set)):
                shown = "[" + ", ".join(str(p) for p in param) + "]"
            elif isinstance(param, type):
                shown = param.__name__
            elif callable(param):
                shown = getattr(param, "__name__", repr(param))
            else:
                shown = str(param)
            message = message.replace(f"%p{i}", shown)
        return message.replace("%v", str(value))

    def _fail(self, message: str, value: Any, check: str) -> bool:
        self._errors.append(ValidationFailure(message=message, value=value, check=check))
        if not self.raise_errors:
            return False
        raise ValidationError(message, value=value, constraint=check)

    # ── Checks ───────────────────────────────────────────────────────────

    def check_int(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return isinstance(value, str) and re.fullmatch(r"-?(0|[1-9][0-9]*)", value) is not None

    def check_id(self, value: Any) -> bool:
        return self.check_int(value) and int(value) > 0

    def check_float(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        if not isinstance(value, str):
            return False
        try:
            float(value)
        except ValueError:
            return False
        return True

    def check_string(self, value: Any) -> bool:
        return isinstance(value, (str, int, float)) and not isinstance(value, bool) and value != ""

    def check_alpha(self, value: Any) -> bool:
        return isinstance(value, str) and re.fullmatch(r"[a-zA-Z]+", value) is not None

    def check_num(self, value: Any) -> bool:
        return re.fullmatch(r"[0-9]+", str(value)) is not None

    def check_alphanum(self, value: Any) -> bool:
        return isinstance(value, (str, int)) and re.fullmatch(r"[a-zA-Z0-9]+", str(value)) is not None

    def check_domainsafe(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        if re.search(r"--|\.|^-|-$|^[0-9]+$", value):
            return False
        return re.fullmatch(r"[a-zA-Z0-9\-]+", value) is not None

    def check_hostname(self, value: Any) -> bool:
        return isinstance(value, str) and _HOSTNAME_RE.match(value) is not None

    def check_email(self, value: Any) -> bool:
        return isinstance(value, str) and _EMAIL_RE.match(value) is not None

    def check_url(self, value: Any) -> bool:
        return isinstance(value, str) and _URL_RE.match(value) is not None

    def check_ip4(self, value: Any) -> bool:
        try:
            ipaddress.IPv4Address(str(value))
        except ValueError:
            return False
        return True

    def check_ip6(self, value: Any) -> bool:
        try:
            ipaddress.IPv6Address(str(value))
        except ValueError:
            return False
        return True

    def check_regex(self, value: Any, pattern: str) -> bool:
        return re.search(pattern, str(value)) is not None

    def check_between(self, value: Any, low: Any = None, high: Any = None) -> bool:
        if value == "":
            return False
        try:
            if low is not None and value < low:
                return False
            if high is not None and value > high:
                return False
        except TypeError:
            return False
        return low is not None or high is not None

    def check_lenbetween(self, value: Any, low: int | None = None, high: int | None = None) -> bool:
        return self.check_between(len(str(value)), low, high)

    def check_invalues(self, value: Any, values: Iterable[Any]) -> bool:
        return value in values

    def check_date(self, value: Any, format: str = "mm.dd.yyyy") -> bool:
        """Date in a ``mm``/``dd``/``yyyy`` layout with one separator, e.g. ``dd.mm.yyyy``."""
        if not isinstance(value, str) or len(value) != 10 or len(format) != 10:
            return False
        separators = format.replace("m", "").replace("d", "").replace("y", "")
        if len(separators) != 2 or separators[0] != separators[1]:
            return False
        pattern = re.escape(format)
        pattern = pattern.replace("mm", "[0-1][0-9]").replace("dd", "[0-3][0-9]").replace("yyyy", "[0-9]{4}")
        if not re.fullmatch(pattern, value):
            return False
        day = int(value[format.index("d"): format.index("d") + 2])
        month = int(value[format.index("m"): format.index("m") + 2])
        year = int(value[format.index("y"): format.index("y") + 4])
        try:
            date(year, month, day)
        except ValueError:
            return False
        return True

    def check_callback(self, value: Any, callback: Callable[[Any], bool]) -> bool:
        return bool(callback(value))

    def check_equal(self, value: Any, other: Any) -> bool:
        return value == other

    def check_instanceof(self, value: Any, cls: type) -> bool:
        return isinstance(value, cls)


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, (list, tuple, set, dict)) and not value


def _check_params(method: Callable[..., Any]) -> list[inspect.Parameter]:
    params = [
        p for p in inspect.signature(method).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    return params[1:]


def _param_count(method: Callable[..., Any]) -> int:
    """Number of check parameters after the value."""
    return len(_check_params(method))


def _with_defaults(method: Callable[..., Any], params: tuple) -> tuple:
    """``params`` padded with the defaults of the parameters not passed."""
    missing = _check_params(method)[len(params):]
    return tuple(params) + tuple(p.default for p in missing if p.default is not p.empty)


__all__ = ["DEFAULT_MESSAGES", "ValidationFailure", "Validator"]
