"""Request signing adapters."""
