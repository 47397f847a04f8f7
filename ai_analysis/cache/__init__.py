"""Result cache.

  - Fingerprints: sha256 over sorted per-answer keys (order independent)
  - Stores: in-memory or Redis, async key-value with TTL
  - Schema version registry with migration steps for cached records
  - ResultCache: JSON envelopes with expiry and version checks
"""
