"""Persistent crawl frontier.

The frontier records which identifiers are still pending and which have been
downloaded for one technology, so an interrupted crawl can resume.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class CrawlFrontier:
    """Pending and completed identifiers for one technology."""
    technology_identifier: str
    pending: List[str] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'technologyIdentifier': self.technology_identifier,
            'pending': list(self.pending),
            'completed': list(self.completed),
            'updatedAt': self.updated_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrawlFrontier':
        return cls(
            technology_identifier=data['technologyIdentifier'],
            pending=[item for item in data.get('pending') or [] if isinstance(item, str)],
            completed=[item for item in data.get('completed') or [] if isinstance(item, str)],
            updated_at=data.get('updatedAt')
        )


class FrontierStore:
    """Reads and writes the frontier file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self, technology_identifier: str) -> CrawlFrontier:
        """Load the saved frontier if it belongs to this technology.

        A frontier saved for another technology, a missing file or an
        unreadable file all yield an empty frontier.
        """
        try:
            raw = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return CrawlFrontier(technology_identifier)
        except OSError as e:
            logger.warning(f"Failed to read crawl state {self.path}: {e}")
            return CrawlFrontier(technology_identifier)

        try:
            frontier = CrawlFrontier.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable crawl state {self.path}: {e}")
            return CrawlFrontier(technology_identifier)

        if frontier.technology_identifier != technology_identifier:
            logger.info(f"Discarding crawl state for {frontier.technology_identifier}")
            return CrawlFrontier(technology_identifier)

        completed = set(frontier.completed)
        frontier.completed = list(dict.fromkeys(frontier.completed))
        frontier.pending = [item for item in dict.fromkeys(frontier.pending) if item not in completed]
        return frontier

    def persist(self, frontier: CrawlFrontier) -> bool:
        """Overwrite the frontier file; failures are logged, not raised."""
        frontier.updated_at = datetime.now(timezone.utc).isoformat()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(frontier.to_dict(), indent=2), encoding='utf-8')
        except OSError as e:
            logger.warning(f"Failed to persist crawl state {self.path}: {e}")
            return False
        return True
