"""
Error taxonomy

ValidationError - bad input caught before any write reaches the gateway
GatewayError    - the persistence call itself failed or timed out

Division by zero in pricing/valuation math is guarded and yields 0,
so there is no exception type for it.
"""
from typing import Dict, Optional


class VitrinaError(Exception):
    """Base class for all engine errors"""


class ValidationError(VitrinaError):
    """Structured set of field errors produced by a draft's validate()"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        summary = ", ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(summary or "Invalid input")


class GatewayError(VitrinaError):
    """A Persistence Gateway call failed or timed out"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
