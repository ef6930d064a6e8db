"""Error taxonomy shared by the store, the services and the HTTP layer."""
from typing import List, Sequence

from .models import FieldViolation, REQUIRED_FIELDS


class DelayServiceError(Exception):
    """Base class for errors raised by the delay services."""

    status_code = 500

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail or message


class ValidationError(DelayServiceError):
    """Client-supplied data failed a required-field or type check."""

    status_code = 400

    def __init__(self, violations: Sequence[FieldViolation]):
        self.violations: List[FieldViolation] = list(violations)

        if any(v.code == "missing" for v in self.violations):
            message = f"Missing required fields: {', '.join(REQUIRED_FIELDS)}"
        else:
            message = "Invalid delay report"

        detail = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        super().__init__(message, detail)

    @property
    def fields(self) -> List[str]:
        """Names of the offending fields, in report order."""
        return [v.field for v in self.violations]


class NotFoundError(DelayServiceError):
    """The operation targeted an id that does not exist."""

    status_code = 404

    def __init__(self, delay_id: str):
        self.delay_id = delay_id
        super().__init__("Delay not found", f"No delay report with id {delay_id}")


class StoreError(DelayServiceError):
    """The underlying persistence layer failed."""

    status_code = 500
