"""
Dispatcher - resolve a request path to a controller action and call it.

Routing is convention only: the first path segment names the controller,
the second the action, the rest are positional arguments.

    /mycontroller/mymethod/abc/123
        → Mycontroller_Controller.mymethod_action("abc", "123")

    /            → Default_Controller.default_action()

Controllers are looked up in the context's :class:`ControllerRegistry`.
When ``settings.profile_log`` is on, each successful call is recorded by
the :class:`~psa.framework.audit.ProfileLogger`; a failing profile write
never affects the call's result.
"""

from __future__ import annotations

import inspect
import warnings
from dataclasses import dataclass
from typing import Any

from psa.core.context import AppContext
from psa.core.errors import (
    BadArgumentsError,
    PsaError,
    UnknownClassError,
    UnknownMethodError,
    UnknownRequestError,
)
from psa.core.settings import MvcSettings
from psa.framework.controller import Controller
from psa.framework.logging import generate_request_id, get_logger, push_context, timed_block
from psa.framework.request import current_request, request_scope

log = get_logger(__name__)

_TRIM_CHARS = "/ \t\n\r\0\x0b"


@dataclass(frozen=True)
class DispatchTarget:
    """Controller class, action method and positional arguments for one request."""

    class_name: str
    method_name: str
    args: tuple[str, ...] = ()


def split_path(raw_path: str, base_prefix: str = "") -> list[str]:
    """Split a request path into segments.

    Drops the query string, removes the first occurrence of ``base_prefix``,
    trims slashes and whitespace. An empty path gives ``[]``.
    """
    path = raw_path.split("?", 1)[0]
    if base_prefix:
        path = path.replace(base_prefix, "", 1)
    path = path.strip(_TRIM_CHARS)
    return path.split("/") if path else []


def resolve_target(segments: list[str] | tuple[str, ...], mvc: MvcSettings | None = None) -> DispatchTarget:
    """Build the dispatch target for path segments using naming conventions."""
    mvc = mvc or MvcSettings()
    controller = segments[0] if len(segments) > 0 and segments[0] else mvc.default_controller_name
    action = segments[1] if len(segments) > 1 and segments[1] else mvc.default_action_name
    return DispatchTarget(
        class_name=_ucfirst(controller) + mvc.default_controller_suffix,
        method_name=action + mvc.default_action_suffix,
        args=tuple(segments[2:]),
    )


def _ucfirst(value: str) -> str:
    return value[:1].upper() + value[1:]


class Dispatcher:
    """
    Resolves paths and invokes controller actions.

    Usage:
        dispatcher = Dispatcher(context)
        result = dispatcher.dispatch("/user/edit/7")
    """

    def __init__(self, context: AppContext) -> None:
        self.context = context

    # ── Resolution ───────────────────────────────────────────────────────

    def split_path(self, raw_path: str) -> list[str]:
        return split_path(raw_path, self.context.settings.basedir_web)

    def resolve_target(self, segments: list[str] | tuple[str, ...]) -> DispatchTarget:
        return resolve_target(segments, self.context.settings.mvc)

    def resolve(self, path: str) -> DispatchTarget:
        return self.resolve_target(self.split_path(path))

    # ── Invocation ───────────────────────────────────────────────────────

    def invoke(self, class_name: str, method_name: str, args: tuple[str, ...] | list[str] = ()) -> Any:
        """Instantiate ``class_name`` and call ``method_name`` with ``args`` positionally.

        Raises:
            UnknownClassError: The class is not registered or its constructor
                cannot be called.
            UnknownMethodError: The instance has no public method of that name.
            BadArgumentsError: ``args`` do not fit the method signature.
        """
        args = tuple(args)
        cls = self.context.registry.get(class_name)
        instance = self._instantiate(class_name, cls)

        method = None if method_name.startswith("_") else getattr(instance, method_name, None)
        if method is None or not callable(method):
            raise UnknownMethodError(class_name, method_name)

        try:
            inspect.signature(method).bind(*args)
        except TypeError as e:
            raise BadArgumentsError(class_name, method_name, args, str(e)) from None

        profile = self.context.settings.profile_log and not getattr(instance, "no_profile_log", False)

        token = push_context(controller=class_name, action=method_name)
        try:
            with timed_block(f"{class_name}->{method_name}") as timer:
                result = method(*args)
            if profile:
                self._write_profile(class_name, method_name, args, timer.duration_seconds)
        finally:
            token.restore()
        return result

    def dispatch(
        self,
        path: str | None = None,
        *,
        client_ip: str | None = None,
        user_agent: str | None = None,
        referer: str | None = None,
    ) -> Any:
        """Resolve ``path`` and invoke it inside a fresh request scope.

        Raises:
            UnknownRequestError: No path was given.
        """
        if not path:
            raise UnknownRequestError("Unknown request path.")

        with request_scope(path, client_ip=client_ip, user_agent=user_agent, referer=referer):
            target = self.resolve(path)
            log.info(
                "request.dispatch",
                path=path,
                controller=target.class_name,
                action=target.method_name,
                arg_count=len(target.args),
            )
            try:
                return self.invoke(target.class_name, target.method_name, target.args)
            except PsaError as e:
                log.warning("request.failed", **e.to_dict())
                raise

    # ── Internal ─────────────────────────────────────────────────────────

    def _instantiate(self, class_name: str, cls: type) -> Any:
        try:
            if issubclass(cls, Controller):
                return cls(self.context)
            return cls()
        except TypeError as e:
            raise UnknownClassError(class_name, cause=e) from e

    def _write_profile(self, class_name: str, method_name: str, args: tuple[str, ...], total_time: float) -> None:
        request = current_request()
        # Outside a request scope every invocation is its own unit of work
        request_id = request.request_id if request else generate_request_id()
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                self.context.profile_logger.log(
                    {
                        "method": f"{class_name}->{method_name}",
                        "total_time": total_time,
                        "method_arguments": repr(list(args)) if args else None,
                        "request_id": request_id,
                    }
                )
        except Exception as e:  # noqa: BLE001
            log.debug("profile.write_failed", error=str(e))


__all__ = ["DispatchTarget", "Dispatcher", "resolve_target", "split_path"]
