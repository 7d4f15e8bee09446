"""Gateway credentials from application settings."""

from gstlifecycle.application.dto.gateway_dto import GatewayCredentials
from gstlifecycle.config import Settings


class SettingsCredentialsProvider:
    """CredentialsProvider reading the gateway account from environment settings."""

    def __init__(self, settings: Settings) -> None:
        self._credentials = GatewayCredentials(
            email=settings.gateway_email,
            username=settings.gateway_username,
            password=settings.gateway_password,
            client_id=settings.gateway_client_id,
            client_secret=settings.gateway_client_secret,
            gstin=settings.gateway_gstin,
            ip_address=settings.gateway_ip_address,
        )

    async def get_credentials(self) -> GatewayCredentials:
        return self._credentials
