"""
Exceptions raised while loading pages and running scenarios.

Only ConstructionError is fatal for a page suite; everything else fails
(or skips) a single scenario.
"""


class DashboardQAError(Exception):
    """Base class for suite errors."""
    pass


class ConstructionError(DashboardQAError):
    """Raised when the browser session cannot be started."""
    pass


class PageDefinitionError(DashboardQAError):
    """Raised when a page file cannot be parsed into a page model."""
    pass


class ElementNotFoundError(DashboardQAError):
    """Raised when a required UI element is absent."""

    def __init__(self, what: str, selector: str):
        self.what = what
        self.selector = selector
        super().__init__(f"{what} not found ({selector})")


class ValidationFailure(AssertionError):
    """Raised when an observed value does not match the expectation."""

    def __init__(self, what: str, expected=None, actual=None, message: str = None):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"{what}: expected {expected!r}, got {actual!r}"
        )


class ScenarioSkipped(DashboardQAError):
    """Raised by a scenario that has nothing to check."""
    pass
