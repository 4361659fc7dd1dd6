"""Base class for dispatchable controllers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from psa.core.context import AppContext
    from psa.core.database import Database
    from psa.core.settings import PsaSettings
    from psa.record.mapper import RecordMapper


class Controller:
    """
    Controllers hold the application context and expose ``*_action`` methods.

    Set ``no_profile_log = True`` on a subclass to keep its actions out of
    the profile log.
    """

    no_profile_log: ClassVar[bool] = False

    def __init__(self, context: AppContext) -> None:
        self.context = context

    @property
    def settings(self) -> PsaSettings:
        return self.context.settings

    @property
    def database(self) -> Database:
        return self.context.database

    @property
    def mapper(self) -> RecordMapper:
        return self.context.mapper

    def log(self, record: Any, storage: str | None = None) -> int:
        """Write an audit record through the context's audit logger."""
        return self.context.audit.log(record, storage)


__all__ = ["Controller"]
