"""Configuration for cvestore.

Settings can be passed explicitly or picked up from the environment:

    CVESTORE_TOP_VENDORS         Number of vendors kept in vendor statistics
    CVESTORE_TIMELINE_GROUPING   Default timeline bucket (day, month, year)
    CVESTORE_LOG_LEVEL           Log level used by the CLI
"""

import os
from typing import Optional

from cvestore.constants import DEFAULT_TOP_VENDORS, TimeGrouping


class Config:
    """Runtime settings shared by services and the CLI."""

    def __init__(
        self,
        top_vendors: Optional[int] = None,
        timeline_grouping: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        """Initialize configuration.

        Args:
            top_vendors: Vendors kept in vendor_distribution (0 keeps all).
            timeline_grouping: Default timeline bucket.
            log_level: Logging level name.

        Raises:
            ValueError: If a setting cannot be interpreted.
        """
        if top_vendors is None:
            top_vendors = int(
                os.environ.get("CVESTORE_TOP_VENDORS", DEFAULT_TOP_VENDORS)
            )
        if top_vendors < 0:
            raise ValueError(f"top_vendors must be >= 0, got {top_vendors}")
        self.top_vendors = top_vendors

        grouping = timeline_grouping or os.environ.get(
            "CVESTORE_TIMELINE_GROUPING", TimeGrouping.MONTH.value
        )
        self.timeline_grouping = TimeGrouping(grouping)

        self.log_level = (
            log_level or os.environ.get("CVESTORE_LOG_LEVEL", "WARNING")
        ).upper()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Config):
            return NotImplemented
        return (
            self.top_vendors == other.top_vendors
            and self.timeline_grouping == other.timeline_grouping
            and self.log_level == other.log_level
        )

    def __repr__(self) -> str:
        return (
            f"Config(top_vendors={self.top_vendors}, "
            f"timeline_grouping={self.timeline_grouping.value!r}, "
            f"log_level={self.log_level!r})"
        )


def get_config() -> Config:
    """Return a Config built from defaults and the environment."""
    return Config()
