"""
Translation Progress Data Class

Contains the TranslationProgress dataclass for tracking translation progress.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class TranslationProgress:
    """Progress information for ongoing translation."""
    current: int
    total: int
    target_language: str = ""
    target_language_name: str = ""
    current_batch: int = 0
    total_batches: int = 0

    @property
    def percent(self) -> float:
        if not self.total:
            return 100.0
        return round(self.current * 100.0 / self.total, 1)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["percent"] = self.percent
        return payload
