"""
Contract for external food database connectors.
"""
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from nutrimatch.models.nutrition import CandidateRecord


class FoodSearchClient(ABC):
    """What the lookup service needs from a food database."""

    @abstractmethod
    def search(self, query: str, cancel: Optional[threading.Event] = None) -> List[CandidateRecord]:
        """Candidates for `query`. Raises NotFoundError when there are none."""

    @abstractmethod
    def get_food_details(
        self, external_id: str, cancel: Optional[threading.Event] = None
    ) -> CandidateRecord:
        """One record by provider id."""
