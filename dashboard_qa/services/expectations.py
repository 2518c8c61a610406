"""Assertion helpers that raise ValidationFailure with expected vs actual."""

from typing import Any, Container

from dashboard_qa.utils.errors import ValidationFailure


def expect_true(value: Any, what: str) -> None:
    if not value:
        raise ValidationFailure(what, expected=True, actual=value, message=f"{what}: check failed")


def expect_equal(actual: Any, expected: Any, what: str) -> None:
    if actual != expected:
        raise ValidationFailure(what, expected=expected, actual=actual)


def expect_not_none(value: Any, what: str) -> None:
    if value is None:
        raise ValidationFailure(what, message=f"{what}: no value was produced")


def expect_contains(container: Container, item: Any, what: str) -> None:
    """`item` is a member (or substring) of `container`."""
    if container is None or item is None or item not in container:
        raise ValidationFailure(
            what,
            expected=item,
            actual=container,
            message=f"{what}: expected {item!r} in {container!r}"
        )
