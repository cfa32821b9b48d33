"""Error taxonomy for the price distribution pipeline."""


class MarketFeedError(Exception):
    """Base class for recoverable, per-symbol pipeline failures."""


class GenerationError(MarketFeedError):
    """The previous record is in a state the generator cannot advance from."""


class PersistenceError(MarketFeedError):
    """The price store rejected a read or write."""


class PublishError(MarketFeedError):
    """A record could not be handed to the message relay."""


class InvalidDestination(PublishError):
    """Outbound destination does not start with an allowed prefix.

    Always a programming error, never a transient condition.
    """

    def __init__(self, destination: str) -> None:
        super().__init__(f"Invalid destination: {destination}")
        self.destination = destination


class RelayUnavailable(PublishError):
    """The relay is not connected (or did not answer in time)."""


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be used."""
