"""Unit tests; no database, network or running event loops beyond pytest-asyncio."""
