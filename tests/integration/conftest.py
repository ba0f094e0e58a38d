"""
Integration Test Configuration

When running in CI (CI=true), tests marked slow are skipped.
Upstream fakes and config fixtures come from tests/conftest.py.
"""

import os
import pytest


@pytest.fixture
def is_ci_environment() -> bool:
    """True if the CI environment variable is set to 'true'."""
    return os.getenv("CI", "").lower() == "true"


@pytest.fixture(autouse=True)
def skip_slow_tests_in_ci(request, is_ci_environment):
    """Skip @pytest.mark.slow tests when running in CI."""
    if is_ci_environment and request.node.get_closest_marker("slow"):
        pytest.skip("Skipping slow test in CI environment")
