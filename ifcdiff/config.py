"""
Classifier configuration.

The critical element types and critical property names are static data.
They can be overridden per deployment through environment variables
(optionally loaded from a .env file):

- IFCDIFF_CRITICAL_TYPES: comma-separated element types, e.g. "IfcWall,IfcBeam"
- IFCDIFF_CRITICAL_PROPERTIES: comma-separated property tokens, e.g. "loadbearing,thickness"

Priority: 1) explicit arguments, 2) environment variables, 3) built-in defaults.
The classifier itself never reads the environment; callers build a
ClassifierConfig once at startup and pass it in.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

from dotenv import load_dotenv

from .schema import CRITICAL_ELEMENT_TYPES, CRITICAL_PROPERTY_NAMES

logger = logging.getLogger(__name__)

CRITICAL_TYPES_ENV = "IFCDIFF_CRITICAL_TYPES"
CRITICAL_PROPERTIES_ENV = "IFCDIFF_CRITICAL_PROPERTIES"


def _parse_list(raw: str) -> FrozenSet[str]:
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class ClassifierConfig:
    """Critical element types and property names used for severity scoring."""
    critical_types: FrozenSet[str]
    critical_properties: FrozenSet[str]

    @classmethod
    def default(cls) -> "ClassifierConfig":
        """Built-in structural types and property names."""
        return cls(
            critical_types=frozenset(CRITICAL_ELEMENT_TYPES),
            critical_properties=frozenset(CRITICAL_PROPERTY_NAMES)
        )

    @classmethod
    def from_env(
        cls,
        critical_types: Optional[Iterable[str]] = None,
        critical_properties: Optional[Iterable[str]] = None,
        env_file: Optional[Union[str, Path]] = None
    ) -> "ClassifierConfig":
        """
        Build a configuration from arguments, environment and defaults.

        Args:
            critical_types: Explicit critical element types (skips the env var)
            critical_properties: Explicit critical property tokens (skips the env var)
            env_file: Optional .env file to load before reading the environment.
                      Variables already set in the process environment win.

        Returns:
            ClassifierConfig instance
        """
        if env_file is not None:
            env_path = Path(env_file)
            if env_path.exists():
                load_dotenv(env_path)
                logger.debug(f"Loaded environment variables from {env_path}")
            else:
                logger.debug(f"No .env file found at {env_path}")

        defaults = cls.default()

        if critical_types is not None:
            types = frozenset(critical_types)
            logger.debug("Critical types: from arguments")
        elif os.getenv(CRITICAL_TYPES_ENV):
            types = _parse_list(os.getenv(CRITICAL_TYPES_ENV))
            logger.debug(f"Critical types: from {CRITICAL_TYPES_ENV}")
        else:
            types = defaults.critical_types
            logger.debug("Critical types: defaults")

        if critical_properties is not None:
            properties = frozenset(critical_properties)
            logger.debug("Critical properties: from arguments")
        elif os.getenv(CRITICAL_PROPERTIES_ENV):
            properties = _parse_list(os.getenv(CRITICAL_PROPERTIES_ENV))
            logger.debug(f"Critical properties: from {CRITICAL_PROPERTIES_ENV}")
        else:
            properties = defaults.critical_properties
            logger.debug("Critical properties: defaults")

        return cls(critical_types=types, critical_properties=properties)
