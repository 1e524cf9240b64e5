"""User profile schemas."""

from pydantic import BaseModel, ConfigDict, Field


class UserProfileUpdate(BaseModel):
    """Editable profile fields.

    Tier and quota fields are deliberately absent; they change only
    through subscription operations.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1, max_length=255)
