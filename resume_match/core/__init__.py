"""
Core scoring and retrieval logic for ResumeMatch.

Submodules:
- retrieval: Score normalization, deduplication, diversity selection and
  evidence retrieval with fallbacks
- matching: Semantic, skill and experience scoring and the match engine
- chat: Question answering grounded on retrieved resume evidence
"""
