"""Test fixtures for xcbazel integration tests."""

from tests.fixtures.machine import FakeMachine

__all__ = ["FakeMachine"]
