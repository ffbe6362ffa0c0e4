from block_connect.integrations.provider_client import ProviderApiClient

__all__ = ["ProviderApiClient"]
