from pydantic import BaseModel, ConfigDict

from envindo.core.roles import Role
from envindo.schemas import user_schema


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int
    user: user_schema.User


class Identity(BaseModel):
    """Decoded bearer claims handed to downstream code as a plain value."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: Role
