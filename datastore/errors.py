class SinkError(RuntimeError):
    """A sink rejected or failed to persist one record."""
