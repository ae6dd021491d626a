"""HTTP adapters for the Fast Purge API."""
