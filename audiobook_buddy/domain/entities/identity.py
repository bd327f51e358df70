"""Identity entities for the audiobook application."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(str, Enum):
    """Resolution state of the viewer's identity."""

    LOADING = "loading"
    READY_WITH_IDENTITY = "ready-with-identity"
    READY_WITHOUT_IDENTITY = "ready-without-identity"
    ERROR = "error"


class Identity(BaseModel):
    """The authenticated subject that scopes all document data."""

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(min_length=1, description="Opaque subject identifier")
    email: str = Field(description="Email-like label shown to the user")
