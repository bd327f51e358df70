"""View entities."""

from enum import Enum


class ViewMode(str, Enum):
    """Which surface the viewer is looking at."""

    LIBRARY = "library"
    READER = "reader"
