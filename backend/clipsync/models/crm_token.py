"""
CRM Token Model

Holds the latest OAuth token set obtained from the Salesforce
authorization-code callback, one row per provider.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.base import BaseModel, String100, String2048


class CrmToken(BaseModel):
    """
    Table: crm_tokens
    -----------------
    A new callback overwrites the previous row for the same provider.
    Tokens are stored as issued; encrypting them at rest is left to the
    database deployment.
    """

    __tablename__ = "crm_tokens"

    provider: Mapped[str] = mapped_column(
        String100,
        unique=True,
        nullable=False,
        comment="CRM provider name (e.g. salesforce)"
    )

    access_token: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="OAuth access token"
    )

    refresh_token: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="OAuth refresh token, when the refresh_token scope was granted"
    )

    instance_url: Mapped[Optional[str]] = mapped_column(
        String2048,
        nullable=True,
        comment="Salesforce instance URL returned with the token"
    )

    token_type: Mapped[Optional[str]] = mapped_column(
        String100,
        nullable=True,
    )

    issued_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Issue time reported by the provider (UTC)"
    )

    def __repr__(self) -> str:
        return f"CrmToken(provider={self.provider!r}, instance_url={self.instance_url!r})"
