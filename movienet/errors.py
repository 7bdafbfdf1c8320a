"""Custom exceptions for movie network operations."""


class MovieNetError(Exception):
    """Base exception for movie network operations."""
    pass


class MovieNotFoundError(MovieNetError):
    """Raised when a search yields no matching movie."""
    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Movie '{query}' not found")


class SourceError(MovieNetError):
    """Raised when the movie data source fails (transport, timeout, bad status or payload)."""
    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class NodeNotFoundError(MovieNetError):
    """Raised when a node id is not present in the network."""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found in network")


class NetworkNotFoundError(MovieNetError):
    """Raised when a saved network id is unknown to the store."""
    def __init__(self, network_id: str):
        self.network_id = network_id
        super().__init__(f"Saved network '{network_id}' not found")


class DocumentIntegrityError(MovieNetError):
    """Raised when a network document is internally inconsistent. Restore is rejected whole."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid network document: {reason}")
