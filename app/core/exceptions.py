"""Errors raised by the rate engine and the carrier repositories"""


class RateValidationError(ValueError):
    """The order cannot be weighed: bad weight, bad quantity or absurd total."""


class DuplicateCarrierError(ValueError):
    """A carrier with the same name is already stored."""


class CarrierRepositoryError(RuntimeError):
    """The carrier list could not be read from its store."""
