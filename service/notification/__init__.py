"""
경매 알림

커밋 후 알림 큐와 디스코드 DM 전송
"""

from service.notification.auction_dispatcher import (
    AuctionNotificationDispatcher,
    auction_dispatcher
)
from service.notification.discord_notifier import DiscordAuctionNotifier

__all__ = [
    "AuctionNotificationDispatcher",
    "auction_dispatcher",
    "DiscordAuctionNotifier",
]
