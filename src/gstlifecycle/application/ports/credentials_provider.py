"""Credentials provider port."""

from typing import Protocol

from gstlifecycle.application.dto.gateway_dto import GatewayCredentials


class CredentialsProvider(Protocol):
    """Supplies the gateway account credentials; nothing else holds them."""

    async def get_credentials(self) -> GatewayCredentials: ...
