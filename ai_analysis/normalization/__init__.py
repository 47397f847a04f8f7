"""Result normalization.

One normalizer per result type turns parsed model output of uncertain shape
into a canonical, fully populated record, or fails with SchemaViolation:
  - vark, tarot, phq9, eq, mbti, love_language (model output)
  - holland (assembled from computed scores only)
"""
