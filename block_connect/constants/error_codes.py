from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN_SCOPES = "UNKNOWN_SCOPES"
    NO_GRANTABLE_SCOPES = "NO_GRANTABLE_SCOPES"
    SCOPE_IN_USE = "SCOPE_IN_USE"
    UNKNOWN_RECIPE = "UNKNOWN_RECIPE"
    UNSUPPORTED_AUTH_METHOD = "UNSUPPORTED_AUTH_METHOD"
    SERVICE_ACCOUNT_REQUIRED = "SERVICE_ACCOUNT_REQUIRED"
    PROVIDER_NOT_INSTALLABLE = "PROVIDER_NOT_INSTALLABLE"
    PROVIDER_INACTIVE = "PROVIDER_INACTIVE"
    SELF_INSTALL = "SELF_INSTALL"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PROVIDER_EXISTS = "PROVIDER_EXISTS"
    SERVICE_ACCOUNT_EXISTS = "SERVICE_ACCOUNT_EXISTS"
    REGISTRY_ENTRY_EXISTS = "REGISTRY_ENTRY_EXISTS"
    SLUG_TAKEN = "SLUG_TAKEN"
    INVALID_SLUG = "INVALID_SLUG"
    INSTALL_CONFLICT = "INSTALL_CONFLICT"

    INVALID_SESSION_TOKEN = "INVALID_SESSION_TOKEN"
    INVALID_ACCESS_TOKEN = "INVALID_ACCESS_TOKEN"
    INVALID_CLIENT_CREDENTIALS = "INVALID_CLIENT_CREDENTIALS"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN_SCOPES: "Some requested scopes are not offered by this provider.",
    ErrorCode.NO_GRANTABLE_SCOPES: "None of the requested scopes can be granted with your role.",
    ErrorCode.SCOPE_IN_USE: "Scopes granted to live installations cannot be removed.",
    ErrorCode.UNKNOWN_RECIPE: "Recipe not found for this provider.",
    ErrorCode.UNSUPPORTED_AUTH_METHOD: "The provider does not support this auth type.",
    ErrorCode.SERVICE_ACCOUNT_REQUIRED: "Service access requires the app block to have a service account.",
    ErrorCode.PROVIDER_NOT_INSTALLABLE: "This provider is not installable.",
    ErrorCode.PROVIDER_INACTIVE: "This provider is not accepting new installations.",
    ErrorCode.SELF_INSTALL: "An app block cannot install itself.",
    ErrorCode.INVALID_TRANSITION: "The installation is not in a state that allows this action.",
    ErrorCode.PROVIDER_EXISTS: "This app block already exposes a provider.",
    ErrorCode.SERVICE_ACCOUNT_EXISTS: "This app block already has a service account, rotate its key instead.",
    ErrorCode.REGISTRY_ENTRY_EXISTS: "This app block is already published to the registry.",
    ErrorCode.SLUG_TAKEN: "This slug is already taken.",
    ErrorCode.INVALID_SLUG: "Slugs may contain only lowercase letters, digits and dashes.",
    ErrorCode.INSTALL_CONFLICT: "The installation could not be saved, please retry.",
    ErrorCode.INVALID_SESSION_TOKEN: "Session token is invalid or expired.",
    ErrorCode.INVALID_ACCESS_TOKEN: "Access token is invalid or expired.",
    ErrorCode.INVALID_CLIENT_CREDENTIALS: "Client credentials are invalid.",
}
