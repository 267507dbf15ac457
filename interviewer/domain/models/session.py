"""Session domain models.

Session Lifecycle:
    1. Created by AddSession with a fresh identifier and an empty network
    2. Mutated by node/edge/ego/prompt actions while the interview runs
    3. Stamped with last_exported_at each time it is exported
    4. Destroyed by RemoveSession, or when its protocol is deleted
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from interviewer.domain.models.network import Network
from interviewer.domain.models.protocol import InstalledProtocol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """One respondent's interview, bound to an installed protocol."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    path: str  # Storage location reference, opaque to the store
    network: Network = Field(default_factory=Network)
    protocol_uid: Optional[str] = Field(
        default=None, description="Key of the installed protocol (reference only)"
    )
    case_id: Optional[str] = None
    prompt_index: int = Field(default=0, ge=0)
    stage_index: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    last_exported_at: Optional[datetime] = None

    @property
    def is_exported(self) -> bool:
        return self.last_exported_at is not None


class StoreState(BaseModel):
    """Complete state owned by a SessionStore.

    version increases by one on every dispatch that changes the state.
    """

    model_config = ConfigDict(frozen=True)

    sessions: Dict[str, Session] = Field(default_factory=dict)
    installed_protocols: Dict[str, InstalledProtocol] = Field(default_factory=dict)
    active_session_id: Optional[str] = None
    version: int = Field(default=0, ge=0)
