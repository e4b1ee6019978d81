"""
Shared utilities for the citation auditor.

Modules:
- file_helpers: Text source reading and atomic JSON writes
- hash_helpers: Content hashing for stable record identifiers
- validation: Input validation for text sources and URLs
"""
