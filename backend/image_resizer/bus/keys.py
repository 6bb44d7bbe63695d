"""Redis key patterns for the request bus."""


class BusKeys:
    """Centralized Redis key management, namespaced by listen address."""

    @classmethod
    def request_stream(cls, address: str) -> str:
        """Stream the service consumes requests from."""
        return address

    @classmethod
    def reply(cls, address: str, request_id: str) -> str:
        """List holding the reply to one request."""
        return f"{address}:reply:{request_id}"
