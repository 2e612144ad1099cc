"""
Presentation hooks.

The search session never reaches into the display layer on its own: whoever
owns the view passes a SearchController in and receives explicit calls.
"""
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class SearchController(ABC):
    @abstractmethod
    def show_calendar(self) -> None:
        ...

    @abstractmethod
    def hide_calendar(self) -> None:
        ...

    @abstractmethod
    def clear_stopover(self) -> None:
        ...


class LoggingController(SearchController):
    """Default controller for headless use (API, scripts): records the calls in the log."""

    def show_calendar(self) -> None:
        logger.debug("show_calendar")

    def hide_calendar(self) -> None:
        logger.debug("hide_calendar")

    def clear_stopover(self) -> None:
        logger.debug("clear_stopover")
