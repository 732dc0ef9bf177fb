"""Free games giveaway service: Twitch redemption tickets and game claims."""

__version__ = "1.0.0"
