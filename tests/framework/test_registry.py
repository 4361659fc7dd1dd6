"""Tests for psa.framework.registry."""

import pytest

from psa.core.errors import UnknownClassError
from psa.framework.controller import Controller
from psa.framework.registry import (
    ControllerRegistry,
    clear_registry,
    default_registry,
    get_controller,
    list_controllers,
    register_controller,
)


class TestControllerRegistry:
    def test_register_under_class_name(self):
        registry = ControllerRegistry()

        class User_Controller(Controller):
            pass

        registry.register(User_Controller)
        assert registry.get("User_Controller") is User_Controller
        assert "User_Controller" in registry
        assert len(registry) == 1

    def test_register_under_explicit_name(self):
        registry = ControllerRegistry()

        class UserController(Controller):
            pass

        registry.register(UserController, name="User_Controller")
        assert registry.names() == ["User_Controller"]

    def test_reregister_same_class_is_noop(self):
        registry = ControllerRegistry()

        class A_Controller:
            pass

        registry.register(A_Controller)
        registry.register(A_Controller)
        assert len(registry) == 1

    def test_name_conflict(self):
        registry = ControllerRegistry()

        class First:
            pass

        class Second:
            pass

        registry.register(First, name="X_Controller")
        with pytest.raises(ValueError, match="already registered"):
            registry.register(Second, name="X_Controller")

    def test_unknown_name(self):
        with pytest.raises(UnknownClassError, match="unexisting class: Nope_Controller"):
            ControllerRegistry().get("Nope_Controller")


class TestDecorator:
    def test_bare_decorator(self):
        @register_controller
        class Default_Controller(Controller):
            pass

        assert get_controller("Default_Controller") is Default_Controller
        assert list_controllers() == ["Default_Controller"]

    def test_named_decorator(self):
        @register_controller("Home_Controller")
        class HomeController(Controller):
            pass

        assert default_registry.get("Home_Controller") is HomeController

    def test_clear_registry(self):
        @register_controller
        class Temp_Controller(Controller):
            pass

        clear_registry()
        assert list_controllers() == []
