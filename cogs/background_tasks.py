"""배경 작업 Cog - 마감된 경매 처리"""
import logging
from discord.ext import commands, tasks

from config.auction import AUCTION
from service.auction.auction_service import AuctionService

logger = logging.getLogger(__name__)


class BackgroundTasksCog(commands.Cog):
    """주기적 배경 작업 관리"""

    def __init__(self, bot):
        self.bot = bot
        self.close_ended_auctions.start()
        logger.info("BackgroundTasksCog initialized")

    def cog_unload(self):
        """Cog 언로드 시 작업 정지"""
        self.close_ended_auctions.cancel()
        logger.info("BackgroundTasksCog unloaded")

    @tasks.loop(seconds=AUCTION.END_SWEEP_INTERVAL_SECONDS)
    async def close_ended_auctions(self):
        """마감 시간이 지난 경매 마감 처리"""
        try:
            results = await AuctionService.close_ended_auctions()

            if results:
                logger.info(f"⌛ Closed {len(results)} ended auctions")
            else:
                logger.debug("No ended auctions to close")

        except Exception as e:
            logger.error(f"Failed to close ended auctions: {e}", exc_info=True)

    @close_ended_auctions.before_loop
    async def before_close_ended_auctions(self):
        """봇 준비 대기"""
        await self.bot.wait_until_ready()
        logger.info("Auction end sweep task ready")


async def setup(bot):
    """Cog 로드"""
    await bot.add_cog(BackgroundTasksCog(bot))
