"""
Integration tests for binquery.

These tests run qualifiers end to end: compilation, planning and execution
against the in-memory store.
"""

import pytest


# Integration test markers
integration = pytest.mark.integration
