"""AuctionLive: users, item catalog and bidding for a live auction."""

from auctionlive.api import AuctionLiveApi

__all__ = ["AuctionLiveApi"]
