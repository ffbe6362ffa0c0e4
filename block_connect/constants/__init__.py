from block_connect.constants.enums import (
    LIVE_INSTALLATION_STATUSES,
    ROLE_ORDER,
    TERMINAL_INSTALLATION_STATUSES,
    AuthType,
    GrantType,
    HealthStatus,
    InstallationKind,
    InstallationStatus,
    ProviderStatus,
    RegistryCategory,
    RegistryVisibility,
    Role,
    SubjectType,
    TokenType,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode

__all__ = [
    "LIVE_INSTALLATION_STATUSES",
    "ROLE_ORDER",
    "TERMINAL_INSTALLATION_STATUSES",
    "AuthType",
    "GrantType",
    "HealthStatus",
    "InstallationKind",
    "InstallationStatus",
    "ProviderStatus",
    "RegistryCategory",
    "RegistryVisibility",
    "Role",
    "SubjectType",
    "TokenType",
    "ErrorCode",
    "ERROR_MESSAGES",
]
