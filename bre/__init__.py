"""Business rule engine: compiles rule packages and evaluates them against facts."""

__version__ = "0.1.0"
