"""renovate-driver command line."""
