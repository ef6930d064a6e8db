"""Explicit validation of incoming delay reports.

Validation runs before every write: the mutation service checks raw client
payloads and the store re-checks records inserted directly (e.g. by the seed
script). Payloads use the API field names (``routeNumber``, ``busId``, ...).
"""
import math
from typing import Any, List, Mapping

from .exceptions import ValidationError
from .models import FieldViolation, NewDelayReport, REQUIRED_FIELDS

STRING_FIELDS = ("routeNumber", "neighborhood", "reason", "busId")

# delay_minutes is a Postgres integer column
MAX_DELAY_MINUTES = 2**31 - 1


def _is_absent(value: Any) -> bool:
    # 0 is a real delay, only None and blank strings count as absent
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_delay_minutes(value: Any) -> int:
    """
    Convert a client-supplied delay to whole minutes.

    Ints pass through, finite floats and numeric strings are truncated
    toward zero. Booleans and anything non-numeric raise ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            value = float(text)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return int(value)
    raise ValueError("must be a number")


def validate_delay_payload(payload: Mapping[str, Any]) -> List[FieldViolation]:
    """
    Check a delay report payload against the required-field rules.

    Args:
        payload: Mapping keyed by API field names

    Returns:
        Violations in REQUIRED_FIELDS order; empty when the payload is valid
    """
    violations: List[FieldViolation] = []

    for field in REQUIRED_FIELDS:
        value = payload.get(field)

        if _is_absent(value):
            violations.append(FieldViolation(field, "missing", "is required"))
            continue

        if field in STRING_FIELDS:
            if not isinstance(value, str):
                violations.append(FieldViolation(field, "invalid", "must be a string"))
            continue

        try:
            minutes = coerce_delay_minutes(value)
        except ValueError as e:
            violations.append(FieldViolation(field, "invalid", str(e)))
            continue

        if minutes < 0:
            violations.append(
                FieldViolation(field, "invalid", "must be greater than or equal to 0")
            )
        elif minutes > MAX_DELAY_MINUTES:
            violations.append(
                FieldViolation(field, "invalid", f"must be at most {MAX_DELAY_MINUTES}")
            )

    return violations


def normalize_delay_payload(payload: Mapping[str, Any]) -> NewDelayReport:
    """
    Validate a client payload and build the record to insert.

    Strings are trimmed, delayMinutes is coerced to an int and the status is
    always active. Anything else in the payload is ignored.

    Raises:
        ValidationError: if any required field is missing or invalid
    """
    violations = validate_delay_payload(payload)
    if violations:
        raise ValidationError(violations)

    return NewDelayReport(
        route_number=payload["routeNumber"].strip(),
        neighborhood=payload["neighborhood"].strip(),
        delay_minutes=coerce_delay_minutes(payload["delayMinutes"]),
        reason=payload["reason"].strip(),
        bus_id=payload["busId"].strip(),
    )
