"""
Unit test fixtures and configuration.

Fixtures specific to unit tests (fast, isolated tests).
"""

from unittest.mock import MagicMock

import pytest

# ============================================================================
# Common Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_config():
    """Create a basic configuration dictionary for unit tests."""
    return {
        'mask_and_scale': True,
        'decode_times': True,
        'missing_without_fill': 'raise',
    }


@pytest.fixture
def mock_logger():
    """Create a mock logger for unit tests."""
    return MagicMock()
