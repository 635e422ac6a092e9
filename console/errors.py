"""Error taxonomy shared by the REST client and the engines.

TransportError  -> the request never produced a usable response
DomainError     -> the backend answered with an error envelope or status
ValidationError -> rejected locally, never sent to the backend
"""
from __future__ import annotations

from typing import Dict


class ConsoleError(Exception):
    """Base class for every error the console surfaces to the user."""


class TransportError(ConsoleError):
    pass


class DomainError(ConsoleError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationError(ConsoleError):
    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Validation failed")
