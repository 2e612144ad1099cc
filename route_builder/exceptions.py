"""
Error taxonomy for the route builder.

Only MissingSearchInput, InvalidRoute and InvalidStopover stop a search before
any fetch. Everything else is recovered locally by the caller.
"""


class RouteBuilderError(Exception):
    """Base class for all route builder errors."""


class MissingSearchInput(RouteBuilderError, ValueError):
    """A required input (credential, date range) is missing."""


class InvalidRoute(RouteBuilderError, ValueError):
    """The requested route path cannot be searched."""


class InvalidStopover(RouteBuilderError, ValueError):
    """The nominated stopover airport is not an intermediate point of the route."""

    def __init__(self, airport: str, route):
        self.airport = airport
        self.route = list(route)
        super().__init__(
            f"Stopover airport {airport} is not an intermediate point of {'-'.join(self.route)}"
        )


class DataUnavailable(RouteBuilderError):
    """No source record exists for a (route, date)."""

    def __init__(self, route: str, day):
        self.route = route
        self.day = day
        super().__init__(f"No availability for {route} on {day}")


class SourceFetchFailure(RouteBuilderError):
    """A single source failed to deliver data."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"Fetch from {source} failed: {reason}" if reason else f"Fetch from {source} failed")


class NoValidItinerary(RouteBuilderError):
    """Itinerary search produced no complete path."""


class StaleSearch(RouteBuilderError):
    """A response belongs to a search generation that has been superseded."""

    def __init__(self, generation: int, current: int):
        self.generation = generation
        self.current = current
        super().__init__(f"Search generation {generation} superseded by {current}")
