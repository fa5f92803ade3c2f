from .feed_client import BetaCrewFeedClient, Connection, ExchangeState, TcpConnection

__all__ = ["BetaCrewFeedClient", "Connection", "ExchangeState", "TcpConnection"]
