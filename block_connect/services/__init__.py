from block_connect.services.app_block_service import AppBlockService
from block_connect.services.consent_service import ConsentService
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.provider_health_service import ProviderHealthService
from block_connect.services.provider_service import ProviderService
from block_connect.services.recipe_resolver import CUSTOM_RECIPE, RecipeResolver
from block_connect.services.registry_service import RegistryService
from block_connect.services.scope_catalog import ScopeCatalog
from block_connect.services.service_account_service import ServiceAccountService
from block_connect.services.token_issuer import TokenIssuer

__all__ = [
    "CUSTOM_RECIPE",
    "AppBlockService",
    "ConsentService",
    "InstallationManager",
    "ProviderHealthService",
    "ProviderService",
    "RecipeResolver",
    "RegistryService",
    "ScopeCatalog",
    "ServiceAccountService",
    "TokenIssuer",
]
