from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    InstallationStatus,
)


class ProviderRef(BaseModel):
    """Points at whatever is being installed: a connector or a provider app block."""

    model_config = ConfigDict(frozen=True)

    kind: InstallationKind
    id: str

    @classmethod
    def connector(cls, connector_id: str) -> "ProviderRef":
        return cls(kind=InstallationKind.CONNECTOR, id=connector_id)

    @classmethod
    def app_block(cls, app_block_id: str) -> "ProviderRef":
        return cls(kind=InstallationKind.APP_BLOCK, id=app_block_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


# Terminal states have no outgoing edges.
ALLOWED_TRANSITIONS: dict[InstallationStatus, frozenset[InstallationStatus]] = {
    InstallationStatus.PENDING: frozenset(
        {
            InstallationStatus.ACTIVE,
            InstallationStatus.REVOKED,
            InstallationStatus.EXPIRED,
        }
    ),
    InstallationStatus.ACTIVE: frozenset(
        {
            InstallationStatus.ERROR,
            InstallationStatus.REVOKED,
            InstallationStatus.EXPIRED,
        }
    ),
    InstallationStatus.ERROR: frozenset(
        {
            InstallationStatus.ACTIVE,
            InstallationStatus.REVOKED,
            InstallationStatus.EXPIRED,
        }
    ),
    InstallationStatus.REVOKED: frozenset(),
    InstallationStatus.EXPIRED: frozenset(),
}


def sources_for(target: InstallationStatus) -> list[str]:
    return [
        source.value
        for source, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    ]


class Installation(BaseModel):
    """A consumer app block's grant against a connector or provider app block."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: InstallationKind
    consumer_app_block_id: str
    provider_id: str
    granted_scopes: frozenset[str] = Field(default_factory=frozenset)
    auth_type: AuthType = AuthType.USER
    status: InstallationStatus
    approved_at: datetime | None = None
    revoked_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def provider_ref(self) -> ProviderRef:
        return ProviderRef(kind=self.kind, id=self.provider_id)

    @property
    def is_live(self) -> bool:
        return not self.is_terminal

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def can_transition_to(self, target: InstallationStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]
