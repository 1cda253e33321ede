"""
Persistence for CRM OAuth tokens.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from clipsync.core.exceptions import StoreError
from clipsync.core.logging import get_logger
from clipsync.db.base import utc_now
from clipsync.db.session import Database
from clipsync.models.crm_token import CrmToken
from clipsync.services.salesforce import SalesforceToken

logger = get_logger(__name__)


class CrmTokenStore:
    """Keeps the latest token per CRM provider."""

    def __init__(self, database: Database):
        self.database = database

    async def save(self, token: SalesforceToken, provider: str = "salesforce") -> None:
        """Insert or overwrite the token row for ``provider``."""
        insert = postgresql.insert if self.database.dialect_name == "postgresql" else sqlite.insert
        now = utc_now()
        values = {
            "access_token": token.access_token,
            "refresh_token": token.refresh_token,
            "instance_url": token.instance_url,
            "token_type": token.token_type,
            "issued_at": token.issued_at,
        }
        stmt = insert(CrmToken.__table__).values(
            provider=provider, created_at=now, updated_at=now, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CrmToken.provider],
            set_={**values, "updated_at": now},
        )

        try:
            async with self.database.session() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("crm_token_save_failed", provider=provider, error=str(e))
            raise StoreError(f"Failed to store {provider} token") from e

        logger.info("crm_token_saved", provider=provider, instance_url=token.instance_url)

    async def get(self, provider: str = "salesforce") -> Optional[CrmToken]:
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(CrmToken).where(CrmToken.provider == provider)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load {provider} token") from e
