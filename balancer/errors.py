"""Errors raised at the task boundary."""


class InvalidTaskError(ValueError):
    """A task was rejected before it reached the queue (e.g. non-positive weight)."""
