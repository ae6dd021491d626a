"""fastpurge: batching, authenticated dispatcher for Akamai Fast Purge (CCU v3).

Splits large invalidation lists into size-bounded request bodies, signs them
with EdgeGrid credentials and delivers them concurrently with per-chunk retries.
"""

__version__ = "1.0.0"
