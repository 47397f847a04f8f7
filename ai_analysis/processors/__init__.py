"""Per-result-type processors.

Each processor owns answer validation, deterministic scoring, the normalizer
for model output, cache policy and provider call parameters for one type:
  - vark, tarot, phq9, eq, happiness, mbti, love_language, disc,
    leadership (model-assisted)
  - holland (scored from the answers alone)
"""
