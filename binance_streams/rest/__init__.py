"""Public REST endpoints."""

from binance_streams.rest.client import Client, Request
from binance_streams.rest.services import GetAllAnnouncementsService, GetAllAssetsService

__all__ = ["Client", "Request", "GetAllAssetsService", "GetAllAnnouncementsService"]
