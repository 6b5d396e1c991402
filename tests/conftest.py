"""Test configuration and fixtures for wxauth."""

from tests.fixtures import *  # noqa: F401,F403
