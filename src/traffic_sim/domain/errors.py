class GraphIntegrityError(RuntimeError):
    """Raised when the graph builder produced something inconsistent (a bug, not bad input)."""
