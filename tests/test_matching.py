"""Tests for type-aware error matching."""

from devtrace.core.errors import ClassifiedError, ErrorType
from devtrace.core.matching import ErrorSlot, error_as

TYPE_NOT_FOUND = ErrorType(2000)
TYPE_INVALID = ErrorType(2001)


def test_none_error_is_no_match():
    target = ErrorSlot()
    assert error_as(None, target) is False
    assert target.value is None


def test_plain_error_is_no_match():
    target = ErrorSlot()
    assert error_as(ValueError("plain error"), target) is False
    assert target.value is None


def test_classified_error_without_types():
    err = ClassifiedError("missing item", TYPE_NOT_FOUND)
    target = ErrorSlot()

    assert error_as(err, target) is True
    assert target.value is err
    assert target.value.type == TYPE_NOT_FOUND


def test_classified_error_with_matching_type():
    err = ClassifiedError("invalid input", TYPE_INVALID)
    target = ErrorSlot()

    assert error_as(err, target, TYPE_INVALID, TYPE_NOT_FOUND) is True
    assert target.value.type == TYPE_INVALID


def test_non_matching_type_still_fills_slot():
    err = ClassifiedError("missing item", TYPE_NOT_FOUND)
    target = ErrorSlot()

    assert error_as(err, target, TYPE_INVALID) is False
    assert target.value is err
    assert target.value.type == TYPE_NOT_FOUND


def test_finds_classified_error_behind_raise_from():
    original = ClassifiedError("missing item", TYPE_NOT_FOUND)
    try:
        try:
            raise original
        except ClassifiedError as exc:
            raise RuntimeError("lookup failed") from exc
    except RuntimeError as exc:
        caught = exc

    target = ErrorSlot()
    assert error_as(caught, target, TYPE_NOT_FOUND) is True
    assert target.value is original


def test_outermost_classified_error_decides_category():
    inner = ClassifiedError("missing item", TYPE_NOT_FOUND)
    outer = ClassifiedError("request failed", TYPE_INVALID, RuntimeError("io"))
    outer.cause.__cause__ = inner

    target = ErrorSlot()
    assert error_as(outer, target, TYPE_NOT_FOUND) is False
    assert target.value is outer


def test_custom_target_class():
    base = KeyError("user_id")
    err = ClassifiedError("lookup failed", TYPE_NOT_FOUND, base)
    target = ErrorSlot(KeyError)

    assert error_as(err, target) is True
    assert target.value is base


def test_custom_target_class_with_types_checks_classified_error():
    base = KeyError("user_id")
    err = ClassifiedError("lookup failed", TYPE_NOT_FOUND, base)

    matched = ErrorSlot(KeyError)
    assert error_as(err, matched, TYPE_NOT_FOUND) is True

    mismatched = ErrorSlot(KeyError)
    assert error_as(err, mismatched, TYPE_INVALID) is False
    assert mismatched.value is base


def test_custom_target_class_with_types_and_no_classified_error():
    target = ErrorSlot(KeyError)

    assert error_as(KeyError("user_id"), target, TYPE_NOT_FOUND) is False
    assert isinstance(target.value, KeyError)
