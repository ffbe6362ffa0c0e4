from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.connector_repository import ConnectorRepository
from block_connect.repositories.installation_repository import (
    AppBlockInstallationRepository,
    ConnectorInstallationRepository,
    InstallationRepository,
)
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository
from block_connect.repositories.service_account_repository import (
    ServiceAccountRepository,
)

__all__ = [
    "AppBlockInstallationRepository",
    "AppBlockRepository",
    "ConnectorInstallationRepository",
    "ConnectorRepository",
    "InstallationRepository",
    "ProviderRepository",
    "RegistryRepository",
    "ServiceAccountRepository",
]
