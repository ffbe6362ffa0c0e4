from pydantic import BaseModel, ConfigDict

from block_connect.constants.enums import Role


class Identity(BaseModel):
    """The authenticated caller, handed explicitly to every service call."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role = Role.VISITOR

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
