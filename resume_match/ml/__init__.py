"""
Machine learning adapters for ResumeMatch.

Submodules:
- embeddings: Text embedding generation and chunk vector storage
"""
