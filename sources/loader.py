"""Prefetch configuration loader for DevDocs Cache.

Loads and validates the list of core frameworks from YAML.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_FILE = Path(__file__).parent / "prefetch.yaml"
DEFAULT_FRAMEWORKS = ['SwiftUI', 'UIKit', 'Foundation', 'Combine', 'SwiftData']


@dataclass
class PrefetchConfig:
    """Frameworks to warm into the cache."""
    frameworks: List[str] = field(default_factory=lambda: list(DEFAULT_FRAMEWORKS))
    enabled: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.frameworks, list):
            raise ValueError("frameworks must be a list")

        names = []
        for name in self.frameworks:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid framework name: {name!r}")
            names.append(name.strip())
        # Drop duplicates, keep order
        self.frameworks = list(dict.fromkeys(names))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PrefetchConfig':
        """Create PrefetchConfig from dictionary."""
        return cls(
            frameworks=data.get('frameworks', list(DEFAULT_FRAMEWORKS)),
            enabled=bool(data.get('enabled', True))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'frameworks': list(self.frameworks), 'enabled': self.enabled}


def load_prefetch_config(path: Optional[Union[str, Path]] = None) -> PrefetchConfig:
    """Load the prefetch configuration.

    Args:
        path: YAML file to read; defaults to ``prefetch.yaml`` beside this module

    Returns:
        The validated configuration, or the built-in defaults when the file
        is missing or invalid
    """
    yaml_file = Path(path) if path is not None else DEFAULT_PREFETCH_FILE

    if not yaml_file.exists():
        logger.warning(f"Prefetch configuration not found: {yaml_file}, using defaults")
        return PrefetchConfig()

    try:
        with open(yaml_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            logger.warning(f"Empty or invalid YAML file: {yaml_file}, using defaults")
            return PrefetchConfig()

        config = PrefetchConfig.from_dict(data)
        logger.debug(f"Loaded prefetch configuration with {len(config.frameworks)} frameworks")
        return config

    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse YAML file {yaml_file}: {e}, using defaults")
        return PrefetchConfig()
    except ValueError as e:
        logger.warning(f"Invalid prefetch configuration in {yaml_file}: {e}, using defaults")
        return PrefetchConfig()
