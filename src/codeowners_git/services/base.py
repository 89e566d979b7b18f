"""Base service ABC.

Services extend BaseService and implement _run(request) -> T. They raise
CodeownersGitError on expected errors. __call__ catches CodeownersGitError and
invokes _handle_failure; the default re-raises. Subclasses may override
_handle_failure to turn a failure into a typed outcome instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..errors import CodeownersGitError

R = TypeVar("R")
T = TypeVar("T")


class BaseService(ABC, Generic[R, T]):
    """Abstract base for operation services."""

    def __call__(self, request: R) -> T:
        try:
            return self._run(request)
        except CodeownersGitError as error:
            return self._handle_failure(request, error)

    @abstractmethod
    def _run(self, request: R) -> T:
        """Execute the service logic. Raise CodeownersGitError on expected errors."""
        ...

    def _handle_failure(self, request: R, error: CodeownersGitError) -> T:
        """Handle CodeownersGitError. Default re-raises."""
        raise error
