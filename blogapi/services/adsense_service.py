"""
AdSense configuration service.

The configuration is a singleton: the table carries a unique
``singleton_key`` that is always ``ADSENSE_SINGLETON_KEY``, and updates
are a single ``INSERT ... ON CONFLICT DO UPDATE`` on that key, so two
concurrent first-time updates cannot create two rows.
"""
import logging

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.models import ADSENSE_SINGLETON_KEY, AdSenseConfig, utcnow
from blogapi.schemas import AdSenseConfigResponse, AdSenseConfigUpdate, PublicAdSenseConfig

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert_for(dialect_name: str):
    """Return the dialect ``insert`` that supports ``on_conflict_do_update``.

    Called at startup so an unsupported database fails before serving
    requests.
    """
    try:
        return _UPSERT_DIALECTS[dialect_name]
    except KeyError:
        raise RuntimeError(
            f"AdSense settings need INSERT ... ON CONFLICT, which the {dialect_name!r} "
            f"dialect does not provide; supported: {', '.join(sorted(_UPSERT_DIALECTS))}"
        ) from None


async def _load(db: AsyncSession) -> AdSenseConfig | None:
    result = await db.execute(
        select(AdSenseConfig)
        .where(AdSenseConfig.singleton_key == ADSENSE_SINGLETON_KEY)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_config(db: AsyncSession) -> AdSenseConfigResponse | None:
    config = await _load(db)
    return AdSenseConfigResponse.model_validate(config) if config else None


async def update_config(db: AsyncSession, data: AdSenseConfigUpdate) -> AdSenseConfigResponse:
    """
    Create the configuration row or overwrite every field of the existing
    one.  Slot ids left out of *data* are stored as NULL.
    """
    dialect_insert = upsert_insert_for(db.get_bind().dialect.name)

    values = {
        "publisher_id": data.publisher_id,
        "ad_slot_header": data.ad_slot_header,
        "ad_slot_sidebar": data.ad_slot_sidebar,
        "ad_slot_footer": data.ad_slot_footer,
        "ad_slot_in_content": data.ad_slot_in_content,
        "is_enabled": data.is_enabled,
    }
    now = utcnow()
    stmt = dialect_insert(AdSenseConfig).values(
        singleton_key=ADSENSE_SINGLETON_KEY, created_at=now, updated_at=now, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[AdSenseConfig.singleton_key],
        set_={**values, "updated_at": now},
    )
    await db.execute(stmt)

    config = await _load(db)
    logger.info("AdSense config saved (enabled=%s)", config.is_enabled)
    return AdSenseConfigResponse.model_validate(config)


async def get_public_config(db: AsyncSession) -> PublicAdSenseConfig | None:
    """Slot ids and the enabled flag only; no ids, publisher id or timestamps."""
    config = await _load(db)
    return PublicAdSenseConfig.model_validate(config) if config else None
