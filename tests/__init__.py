"""Test suite for modcache.

Test Structure:
- unit/caching/: Configuration, key derivation, path layout, codec and entries
- unit/io/: Real and fake filesystem implementations
- unit/config/: Config file loading and environment overrides
- unit/cli/: The modcache command-line interface
- unit/logging/: Logging configuration
- conftest.py: Shared module, payload and filesystem fixtures
"""
