"""
Root conftest.py for the pipeline monitor test suite.

This file contains pytest configuration and plugins that apply to the entire test suite.
"""

# Pytest plugins configuration
pytest_plugins = ["pytest_asyncio"]
