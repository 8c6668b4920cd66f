from .inbound_request import InboundRequest

__all__ = ["InboundRequest"]
