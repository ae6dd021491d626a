"""Domain models for purge requests and their delivery."""
