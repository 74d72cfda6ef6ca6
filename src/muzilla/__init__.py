"""muzilla - moderation core of a social music platform backend."""

__version__ = "1.0.0"
