"""Tests for the exception framework and Outcome results."""

import pytest

from artiforge_common.exceptions import (
    ArtiforgeError,
    ConfigurationError,
    NotFoundError,
    OperationError,
    ResourceError,
    ValidationError,
)
from artiforge_common.outcome import Outcome


class TestArtiforgeError:
    """Test the base ArtiforgeError class."""

    def test_basic_exception(self):
        error = ArtiforgeError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}
        assert error.details == {}

    def test_exception_with_context(self):
        error = ArtiforgeError("Operation failed", context={"artifact_id": 3})
        assert error.context == {"artifact_id": 3}
        assert error.details is error.context

    def test_details_take_precedence(self):
        error = ArtiforgeError("x", context={"a": 1}, details={"b": 2})
        assert error.context == {"b": 2}


class TestClassification:
    """Client-caused versus server-side errors."""

    @pytest.mark.parametrize("exc_class", [ValidationError, NotFoundError])
    def test_client_errors(self, exc_class):
        assert exc_class("bad").client_error is True

    @pytest.mark.parametrize(
        "exc_class", [ArtiforgeError, ConfigurationError, OperationError, ResourceError]
    )
    def test_server_errors(self, exc_class):
        assert exc_class("boom").client_error is False

    def test_all_inherit_from_base(self):
        for exc_class in (ValidationError, NotFoundError, ConfigurationError,
                          OperationError, ResourceError):
            assert issubclass(exc_class, ArtiforgeError)


class TestOutcome:

    def test_success(self):
        outcome = Outcome.success(42)
        assert outcome.ok
        assert outcome.error is None
        assert outcome.unwrap() == 42

    def test_failure_unwrap_raises_carried_error(self):
        error = NotFoundError("missing")
        outcome = Outcome.failure(error)
        assert not outcome.ok
        assert outcome.value is None
        with pytest.raises(NotFoundError) as exc_info:
            outcome.unwrap()
        assert exc_info.value is error
