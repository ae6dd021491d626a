"""Configuration and credential loading."""
