"""
Pytest configuration for gitlink tests.

Fixtures live in shared_fixtures.py so they can be imported elsewhere.
"""
from gitlink.tests.shared_fixtures import *  # noqa: F401,F403
