"""
PSA Framework - Request dispatch and application services.

This module provides:
- Controller base class and registration
- Convention-based path dispatching
- Audit and profile logging
- Input validation
- Structured logging with request context

Import the dispatcher from ``psa.framework.dispatcher`` (it pulls in the
application context, which depends on the database layer).
"""

from psa.framework.controller import Controller
from psa.framework.registry import (
    ControllerRegistry,
    clear_registry,
    default_registry,
    get_controller,
    list_controllers,
    register_controller,
)
from psa.framework.validator import Validator

__all__ = [
    # Controllers
    "Controller",
    "ControllerRegistry",
    "register_controller",
    "get_controller",
    "list_controllers",
    "clear_registry",
    "default_registry",
    # Validation
    "Validator",
]
