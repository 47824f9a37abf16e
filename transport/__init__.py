from transport.client import RequestsTransport, Response, Transport

__all__ = ["RequestsTransport", "Response", "Transport"]
