from block_connect.dtos.app_block_dtos import CreateAppBlockDTO, UpdateAppBlockDTO
from block_connect.dtos.consent_dtos import (
    ConsentRequestDTO,
    ConsentScopeDTO,
    ProviderContextDTO,
    ScopeValidationDTO,
)
from block_connect.dtos.health_dtos import HealthCheckResultDTO
from block_connect.dtos.installation_dtos import (
    CreateInstallationDTO,
    InstallResultDTO,
    UpdateInstallationGrantDTO,
)
from block_connect.dtos.provider_dtos import (
    CreateProviderDTO,
    ProviderScopeInputDTO,
    UpdateProviderDTO,
)
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    RegistryEntryWithProviderDTO,
    RegistryPageDTO,
    UpdateRegistryEntryDTO,
)
from block_connect.dtos.service_account_dtos import ServiceAccountCredentialsDTO
from block_connect.dtos.token_dtos import (
    AppTokenPayload,
    IssuedTokenDTO,
    SessionTokenPayload,
    TokenGrant,
)

__all__ = [
    "CreateAppBlockDTO",
    "UpdateAppBlockDTO",
    "ConsentRequestDTO",
    "ConsentScopeDTO",
    "ProviderContextDTO",
    "ScopeValidationDTO",
    "HealthCheckResultDTO",
    "CreateInstallationDTO",
    "InstallResultDTO",
    "UpdateInstallationGrantDTO",
    "CreateProviderDTO",
    "ProviderScopeInputDTO",
    "UpdateProviderDTO",
    "CreateRegistryEntryDTO",
    "RegistryBrowseFiltersDTO",
    "RegistryEntryWithProviderDTO",
    "RegistryPageDTO",
    "UpdateRegistryEntryDTO",
    "ServiceAccountCredentialsDTO",
    "AppTokenPayload",
    "IssuedTokenDTO",
    "SessionTokenPayload",
    "TokenGrant",
]
