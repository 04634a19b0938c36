"""Provider credential data access operations."""

from sqlalchemy import select

from app.dao.base import BaseDAO
from app.models.domain import ProviderCredential
from app.models.orm import ProviderCredentialModel


def _to_credential(model: ProviderCredentialModel) -> ProviderCredential:
    return ProviderCredential(
        id=model.id,
        user_id=model.user_id,
        service=model.service,
        encrypted_api_key=model.encrypted_api_key,
        base_url=model.base_url,
        is_active=model.is_active,
    )


class CredentialDAO(BaseDAO[ProviderCredential]):
    """Stored BYOK credentials, one row per (user, service).

    Keys are returned still encoded; decoding is the caller's job.
    """

    async def upsert(
        self,
        user_id: str,
        service: str,
        encrypted_api_key: str,
        *,
        base_url: str | None = None,
        is_active: bool = True,
    ) -> ProviderCredential:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProviderCredentialModel)
                .where(ProviderCredentialModel.user_id == user_id)
                .where(ProviderCredentialModel.service == service)
            )
            model = result.scalar_one_or_none()
            if model is None:
                model = ProviderCredentialModel(user_id=user_id, service=service)
                session.add(model)

            model.encrypted_api_key = encrypted_api_key
            model.base_url = base_url
            model.is_active = is_active
            await session.flush()
            return _to_credential(model)

    async def get_active(self, user_id: str, service: str) -> ProviderCredential | None:
        """Active credential with a non-empty key, else None."""
        async with self._db.session() as session:
            result = await session.execute(
                select(ProviderCredentialModel)
                .where(ProviderCredentialModel.user_id == user_id)
                .where(ProviderCredentialModel.service == service)
            )
            model = result.scalar_one_or_none()
            if model is None or not model.is_active or not model.encrypted_api_key:
                return None
            return _to_credential(model)
