"""Build-time tooling for the Mahean Ahmed story site."""

__version__ = "0.1.0"
