"""
File Ingestion Processors

Pure helpers used by the collectors:
- selector.py - Custom predicate / regular expression / accept-all selection
- resolver.py - Trigger payload classification and path resolution
"""
