"""Drive Renovate's dependency-update PRs to merge across a fleet of GitHub repositories."""

__version__ = "0.1.0"
