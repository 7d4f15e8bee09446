"""Unit tests for domain exceptions."""

import pytest

from gstlifecycle.domain.exceptions import (
    ConflictFault,
    GatewayAuthFailed,
    GatewayFault,
    GatewayTimeout,
    GSTLifecycleError,
    NotFound,
    PermissionDenied,
    ValidationFault,
)


@pytest.mark.parametrize(
    "exc_type",
    [PermissionDenied, NotFound, ValidationFault, GatewayFault, ConflictFault],
)
def test_faults_inherit_lifecycle_error(exc_type) -> None:
    """Every domain fault can be caught as GSTLifecycleError."""
    assert issubclass(exc_type, GSTLifecycleError)


def test_gateway_subclasses_carry_reason() -> None:
    """Auth and timeout faults are GatewayFaults with a fixed reason."""
    assert GatewayAuthFailed("bad creds").reason == "auth"
    assert GatewayTimeout("slow").reason == "timeout"
    assert GatewayFault("boom").reason == "gateway"
    assert GatewayFault("boom", reason="transport").reason == "transport"


def test_timeout_catchable_as_gateway_fault() -> None:
    with pytest.raises(GatewayFault, match="slow"):
        raise GatewayTimeout("slow")


def test_not_found_message() -> None:
    """NotFound names the resource and identifier."""
    exc = NotFound("Document", "EWB001")
    assert str(exc) == "Document EWB001 not found"
    assert exc.identifier == "EWB001"


def test_validation_fault_field() -> None:
    exc = ValidationFault("distance must be a whole number", field="distance")
    assert exc.field == "distance"
    assert ValidationFault("Payload must be an object").field is None


def test_conflict_fault_message() -> None:
    exc = ConflictFault("EWB001")
    assert exc.document_number == "EWB001"
    assert "modified concurrently" in str(exc)
