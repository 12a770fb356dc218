"""Custom exceptions for the listing buy bot."""


class BotError(Exception):
    """Base exception for bot errors."""
    pass


class ConfigError(BotError):
    """Raised when the configuration cannot be used to start the bot."""
    pass
