"""Interface for presenting results to the user.

Defines the contract for displaying information, errors, warnings and the
per-chunk delivery summary, allowing different UI implementations.
"""

import abc
from typing import Any, Sequence

from fastpurge.domain.models.purge import DeliveryResult


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_summary(self, results: Sequence[DeliveryResult]) -> None:
        """Displays the outcome of every delivered chunk.

        Args:
            results: One DeliveryResult per dispatched chunk, in any order.
        """
        pass
