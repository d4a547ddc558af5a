"""Safe remote purchase: a two-party escrow secured by double collateral."""

__version__ = "0.1.0"
