from pydantic import BaseModel, ConfigDict

from block_connect.constants.enums import Role


class ScopeDefinition(BaseModel):
    """A named capability as the catalog sees it, whatever table it lives in."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    required_role: Role | None = None
    is_public_read: bool = False
