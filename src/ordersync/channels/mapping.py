"""Registry channel names → adapter channel identifiers.

The credential registry stores branded names; the adapter endpoint expects
the short canonical ones. The table is fixed and total over REGISTRY_CHANNELS.
"""
from typing import Dict

from ordersync.errors import UnknownChannelError
from ordersync.sync.types import Channel

REGISTRY_TO_ADAPTER: Dict[str, Channel] = {
    "naver_smartstore": Channel.SMARTSTORE,
    "cafe24": Channel.STOREFRONT,
    "coupang": Channel.MARKETPLACE,
}

REGISTRY_CHANNELS = tuple(REGISTRY_TO_ADAPTER)

# Days per adapter call; smart store calls are split again server-side
CHUNK_DAYS: Dict[Channel, int] = {
    Channel.SMARTSTORE: 3,
    Channel.STOREFRONT: 30,
    Channel.MARKETPLACE: 14,
}
DEFAULT_CHUNK_DAYS = 14


def to_adapter_channel(registry_channel: str) -> Channel:
    try:
        return REGISTRY_TO_ADAPTER[registry_channel]
    except KeyError:
        raise UnknownChannelError(
            f"Unsupported registry channel: {registry_channel!r}"
        ) from None


def chunk_days_for(channel: Channel) -> int:
    return CHUNK_DAYS.get(channel, DEFAULT_CHUNK_DAYS)
