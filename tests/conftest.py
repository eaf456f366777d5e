"""Pytest fixtures for renovate-driver tests."""

import pytest
from github_fakes import FakeGitHub

from renovate_driver.config import DEFAULT_SETTINGS, Settings
from renovate_driver.models import RepositoryTarget


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def repo() -> RepositoryTarget:
    return RepositoryTarget(owner="acme", name="widgets", archived=False, default_branch="main")


@pytest.fixture
def settings() -> Settings:
    return DEFAULT_SETTINGS
