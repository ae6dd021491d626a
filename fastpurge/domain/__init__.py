"""Domain Layer: value objects, entities, exceptions and ports.

Has no dependency on HTTP, credential files or the console.
"""
