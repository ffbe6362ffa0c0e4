from enum import Enum


class Role(str, Enum):
    VISITOR = "visitor"
    MEMBER = "member"
    CREATOR = "creator"
    ORGANIZER = "organizer"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)

    def satisfies(self, required: "Role | None") -> bool:
        if required is None:
            return True
        return self.rank >= required.rank


ROLE_ORDER: list[Role] = [
    Role.VISITOR,
    Role.MEMBER,
    Role.CREATOR,
    Role.ORGANIZER,
    Role.ADMIN,
]


class AuthType(str, Enum):
    USER = "user"
    SERVICE = "service"


class InstallationKind(str, Enum):
    CONNECTOR = "connector"
    APP_BLOCK = "app_block"


class InstallationStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    ERROR = "error"


LIVE_INSTALLATION_STATUSES: tuple[str, ...] = (
    InstallationStatus.PENDING.value,
    InstallationStatus.ACTIVE.value,
    InstallationStatus.ERROR.value,
)

TERMINAL_INSTALLATION_STATUSES: tuple[str, ...] = (
    InstallationStatus.REVOKED.value,
    InstallationStatus.EXPIRED.value,
)


class ProviderStatus(str, Enum):
    ACTIVE = "active"
    DEPRECATED = "deprecated"
    DISABLED = "disabled"


class RegistryCategory(str, Enum):
    EVENTS = "events"
    TOOLS = "tools"
    MUSIC = "music"
    GAMES = "games"
    COMMUNITY = "community"
    OTHER = "other"


class RegistryVisibility(str, Enum):
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


class TokenType(str, Enum):
    SESSION = "session"
    APP_BLOCK = "app_block"


class GrantType(str, Enum):
    USER_SESSION = "user_session"
    CLIENT_CREDENTIALS = "client_credentials"


class SubjectType(str, Enum):
    USER = "user"
    SERVICE = "service"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    NEEDS_REAUTH = "needs_reauth"
    DEGRADED = "degraded"
    INACTIVE = "inactive"
