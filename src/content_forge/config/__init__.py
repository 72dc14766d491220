"""Configuration: environment settings and provider defaults."""
