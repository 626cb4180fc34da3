"""Persistent per-user and per-deployment key/value settings."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import AppSetting, UserSetting

logger = logging.getLogger(__name__)


class SettingsStore:
    """Read and write string settings scoped to a namespace.

    User values override deployment values only by convention of the
    caller; the store itself never merges the two scopes.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_app_value(self, namespace: str, key: str, default: str = "") -> str:
        async with self._session_factory() as session:
            value = await session.scalar(
                select(AppSetting.value).where(
                    AppSetting.namespace == namespace, AppSetting.key == key
                )
            )
        return default if value is None else value

    async def get_user_value(
        self, user_id: str | None, namespace: str, key: str, default: str = ""
    ) -> str:
        if not user_id:
            return default
        async with self._session_factory() as session:
            value = await session.scalar(
                select(UserSetting.value).where(
                    UserSetting.user_id == user_id,
                    UserSetting.namespace == namespace,
                    UserSetting.key == key,
                )
            )
        return default if value is None else value

    async def set_app_value(self, namespace: str, key: str, value: str) -> None:
        async with self._session_factory() as session:
            record = await session.scalar(
                select(AppSetting).where(
                    AppSetting.namespace == namespace, AppSetting.key == key
                )
            )
            if record is None:
                record = AppSetting(namespace=namespace, key=key, value=value)
                session.add(record)
            else:
                record.value = value
            await session.commit()
        logger.debug("Stored app setting %s.%s", namespace, key)

    async def set_user_value(
        self, user_id: str, namespace: str, key: str, value: str
    ) -> None:
        async with self._session_factory() as session:
            record = await session.scalar(
                select(UserSetting).where(
                    UserSetting.user_id == user_id,
                    UserSetting.namespace == namespace,
                    UserSetting.key == key,
                )
            )
            if record is None:
                record = UserSetting(
                    user_id=user_id, namespace=namespace, key=key, value=value
                )
                session.add(record)
            else:
                record.value = value
            await session.commit()
        logger.debug("Stored user setting %s.%s for %s", namespace, key, user_id)
