from models.users import User
from models.product import Product, AuctionStatus, classify_status
from models.proxy_bid import ProxyBid
from models.bid_history import BidHistory
from models.rejected_bidder import RejectedBidder
from models.system_setting import SystemSetting

__all__ = [
    "User",
    "Product",
    "AuctionStatus",
    "classify_status",
    "ProxyBid",
    "BidHistory",
    "RejectedBidder",
    "SystemSetting",
]
