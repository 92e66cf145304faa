"""Read-only view of the active marketplace credentials."""
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from ordersync.channels.mapping import REGISTRY_CHANNELS, to_adapter_channel
from ordersync.errors import RegistryError
from ordersync.models.sync import ApiCredential
from ordersync.sync.types import ChannelTarget


class CredentialRegistry:
    def __init__(self, engine):
        self.engine = engine

    def active_targets(self) -> List[ChannelTarget]:
        """
        Return one ChannelTarget per active credential, in registry order.

        Raises:
            RegistryError: if the credential table cannot be read.
        """
        try:
            with Session(self.engine) as s:
                rows = s.exec(
                    select(ApiCredential)
                    .where(ApiCredential.is_active == True)  # noqa: E712
                    .where(col(ApiCredential.channel).in_(REGISTRY_CHANNELS))
                    .order_by(ApiCredential.id)
                ).all()
        except SQLAlchemyError as exc:
            raise RegistryError(f"credential lookup failed: {exc}") from exc

        return [
            ChannelTarget(
                channel=to_adapter_channel(row.channel),
                sub_account_id=row.brand_id or None,
            )
            for row in rows
        ]
