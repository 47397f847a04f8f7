"""LLM provider gateway layer.

Provides the resilient path from a prompt to parseable JSON:
  - Per-caller Rate Limiter (fixed window, pluggable store)
  - Provider Client (timed attempts, exponential backoff on transient failures)
  - Response Sanitizer (fence/prose stripping, syntax repair, truncation repair)
"""
