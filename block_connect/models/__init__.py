from block_connect.models.app_block import AppBlock
from block_connect.models.connector import Connector, ConnectorRecipe, ConnectorScope
from block_connect.models.identity import Identity
from block_connect.models.installation import Installation, ProviderRef
from block_connect.models.provider import AppBlockProvider, ProviderScope
from block_connect.models.registry_entry import RegistryEntry
from block_connect.models.scope import ScopeDefinition
from block_connect.models.service_account import ServiceAccount

__all__ = [
    "AppBlock",
    "AppBlockProvider",
    "Connector",
    "ConnectorRecipe",
    "ConnectorScope",
    "Identity",
    "Installation",
    "ProviderRef",
    "ProviderScope",
    "RegistryEntry",
    "ScopeDefinition",
    "ServiceAccount",
]
