"""gworkspace Test Suite

Test organization:
- unit/cache/: key builder, TTL store, invalidation rules
- unit/session/: session lifecycle, result classification, stdio transport
- unit/client/: cache-aware client and CLI commands

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/cache/
"""
