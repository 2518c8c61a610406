"""Utility modules for the dashboard UI suite."""

from dashboard_qa.utils.config import settings, Settings, validate_settings
from dashboard_qa.utils.logging import setup_logging, JSONFormatter
from dashboard_qa.utils.errors import (
    DashboardQAError,
    ConstructionError,
    PageDefinitionError,
    ElementNotFoundError,
    ValidationFailure,
    ScenarioSkipped,
)

__all__ = [
    'settings',
    'Settings',
    'validate_settings',
    'setup_logging',
    'JSONFormatter',
    'DashboardQAError',
    'ConstructionError',
    'PageDefinitionError',
    'ElementNotFoundError',
    'ValidationFailure',
    'ScenarioSkipped',
]
