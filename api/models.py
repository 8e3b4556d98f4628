"""
API request and response models for AssetVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
assets/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from assets.models import AssetSummary

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth.

    Strict string types: a JSON number or null where a string is expected is a
    malformed request (400), not a failed login (401). Length is not checked:
    an over-long login or password simply fails to match (401).
    """

    model_config = ConfigDict(strict=True)

    login: str
    password: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    token: str


class StatusResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    """Uniform error envelope. The message is terse and category-level only."""

    error: str


class AssetListItem(BaseModel):
    """One row of GET /api/assets. Never carries the asset bytes."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner: int
    created_at: datetime
    size: int

    @classmethod
    def from_summary(cls, summary: AssetSummary) -> "AssetListItem":
        return cls(
            name=summary.name,
            owner=summary.owner_id,
            created_at=summary.created_at,
            size=summary.size,
        )


class AssetListResponse(BaseModel):
    assets: list[AssetListItem]
