"""Configuration management for KPScript instances."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class KpscriptConfig:
    """Configuration for Kpscript instances."""

    # Debug settings
    # Warning: debug logs contain passwords and secrets from the database.
    # Only use it in a local environment.
    debug: bool = False

    # Process settings
    timeout: Optional[float] = None  # seconds, None waits forever

    # File settings
    tmp_dir: Optional[str] = None  # None uses the system temporary directory

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if self.tmp_dir is not None and self.tmp_dir.strip() == "":
            raise ValueError("tmp_dir cannot be empty")


# Default configuration instance
DEFAULT_CONFIG = KpscriptConfig()
