"""Errors raised while reading mintsync settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, such as a non-numeric timeout."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable is unset or blank."""
