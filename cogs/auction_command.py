"""
경매 커맨드

입찰, 즉시 구매, 입찰자 관리 슬래시 커맨드를 제공합니다.
비즈니스 로직은 AuctionService에 있고, 여기서는 결과와 거절 사유만 전달합니다.
"""
import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from decorator.account import requires_account
from exceptions import AuctionHouseError, UserNotFoundError
from models.product import AuctionStatus
from models.repos.users_repo import find_account_by_discordid
from models.users import User
from service.auction.auction_service import AuctionService
from service.auction.results import BidResult

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    AuctionStatus.ACTIVE: "🟢 진행 중",
    AuctionStatus.PENDING: "🟡 마감 (결제 대기)",
    AuctionStatus.SOLD: "✅ 판매 완료",
    AuctionStatus.CANCELLED: "❌ 거래 취소",
    AuctionStatus.EXPIRED: "⌛ 유찰",
}


def format_bid_result(result: BidResult) -> str:
    price = f"{result.new_price:,}원"

    if result.sold:
        if result.is_bidder_winning:
            message = f"🎉 즉시 구매가 {price}에 낙찰되었습니다! 결제를 진행해주세요."
        else:
            message = f"🔚 다른 입찰자에게 즉시 구매가 {price}로 낙찰되었습니다."
    elif result.is_bidder_winning:
        message = f"✅ 입찰 완료! 현재가: {price} (내 최대 입찰가: {result.max_bid:,}원)"
    else:
        message = f"⚠️ 입찰은 접수되었지만 다른 입찰자가 {price}로 앞서 있습니다."

    if result.extended and result.new_end_at:
        message += f"\n⏰ 마감 시간이 {result.new_end_at:%Y-%m-%d %H:%M} (UTC)로 연장되었습니다."

    return message


class AuctionCommand(commands.Cog):
    """경매 커맨드"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _get_account(self, interaction: discord.Interaction) -> User:
        user = await find_account_by_discordid(interaction.user.id)
        if user is None:
            raise UserNotFoundError(interaction.user.id)
        return user

    async def _reply_error(self, interaction: discord.Interaction, error: AuctionHouseError) -> None:
        logger.info(f"Auction request refused for {interaction.user.id}: {error.message}")
        await interaction.response.send_message(f"❌ {error.message}", ephemeral=True)

    @app_commands.command(name="경매등록", description="📦 새 경매 등록")
    @app_commands.describe(
        name="상품명",
        starting_price="시작가",
        step_price="최소 입찰 단위",
        duration_hours="경매 기간 (시간)",
        buy_now_price="즉시 구매가 (선택)",
        auto_extend="마감 직전 입찰 시 자동 연장",
        allow_unrated="평가 이력 없는 입찰자 허용"
    )
    @requires_account()
    async def create_auction(
        self,
        interaction: discord.Interaction,
        name: str,
        starting_price: int,
        step_price: int,
        duration_hours: int,
        buy_now_price: Optional[int] = None,
        auto_extend: bool = False,
        allow_unrated: bool = True
    ):
        try:
            user = await self._get_account(interaction)
            product = await AuctionService.create_auction(
                seller_id=user.id,
                name=name,
                starting_price=starting_price,
                step_price=step_price,
                duration_hours=duration_hours,
                buy_now_price=buy_now_price,
                auto_extend=auto_extend,
                allow_unrated_bidder=allow_unrated,
            )
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        await interaction.response.send_message(
            f"📦 경매 #{product.id} [{product.name}] 등록 완료! "
            f"시작가 {product.starting_price:,}원, 마감 {product.end_at:%Y-%m-%d %H:%M} (UTC)",
            ephemeral=True
        )

    @app_commands.command(name="입찰", description="💰 자동 입찰 (최대 입찰가까지 자동으로 입찰)")
    @app_commands.describe(product_id="경매 번호", max_bid="최대 입찰가")
    @requires_account()
    async def place_bid(self, interaction: discord.Interaction, product_id: int, max_bid: int):
        try:
            user = await self._get_account(interaction)
            result = await AuctionService.place_bid(product_id, user.id, max_bid)
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        await interaction.response.send_message(format_bid_result(result), ephemeral=True)

    @app_commands.command(name="즉시구매", description="🛒 즉시 구매가로 바로 구매")
    @app_commands.describe(product_id="경매 번호")
    @requires_account()
    async def buy_now(self, interaction: discord.Interaction, product_id: int):
        try:
            user = await self._get_account(interaction)
            result = await AuctionService.buy_now(product_id, user.id)
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        await interaction.response.send_message(
            f"🛒 [{result.product_name}]을(를) {result.price:,}원에 구매했습니다. 결제를 진행해주세요.",
            ephemeral=True
        )

    @app_commands.command(name="입찰자거부", description="🚫 내 경매에서 입찰자 거부")
    @app_commands.describe(product_id="경매 번호", bidder="거부할 입찰자")
    @requires_account()
    async def reject_bidder(self, interaction: discord.Interaction, product_id: int, bidder: discord.User):
        try:
            seller = await self._get_account(interaction)
            target = await find_account_by_discordid(bidder.id)
            if target is None:
                raise UserNotFoundError(bidder.id)
            result = await AuctionService.reject_bidder(product_id, target.id, seller.id)
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        message = f"🚫 {bidder.display_name}님의 입찰을 거부했습니다. 현재가: {result.new_price:,}원"
        if result.leader_changed:
            message += "\n최고 입찰자가 변경되었습니다."
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="입찰자거부해제", description="↩️ 입찰자 거부 해제")
    @app_commands.describe(product_id="경매 번호", bidder="거부를 해제할 입찰자")
    @requires_account()
    async def unreject_bidder(self, interaction: discord.Interaction, product_id: int, bidder: discord.User):
        try:
            seller = await self._get_account(interaction)
            target = await find_account_by_discordid(bidder.id)
            if target is None:
                raise UserNotFoundError(bidder.id)
            removed = await AuctionService.unreject_bidder(product_id, target.id, seller.id)
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        if removed:
            message = f"↩️ {bidder.display_name}님의 거부를 해제했습니다. 다시 입찰할 수 있습니다."
        else:
            message = f"ℹ️ {bidder.display_name}님은 거부된 입찰자가 아닙니다."
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="경매상태", description="🔎 경매 상태 조회")
    @app_commands.describe(product_id="경매 번호")
    async def auction_status(self, interaction: discord.Interaction, product_id: int):
        try:
            status = await AuctionService.get_auction_status(product_id)
            history = await AuctionService.get_bid_history(product_id)
        except AuctionHouseError as e:
            await self._reply_error(interaction, e)
            return

        lines = [f"경매 #{product_id}: {STATUS_LABELS[status]}"]
        if history:
            latest = history[0]
            label = "즉시 구매" if latest.is_buy_now else "현재가"
            lines.append(f"{label}: {latest.current_price:,}원 (입찰 {len(history)}회)")
        else:
            lines.append("아직 입찰이 없습니다.")

        await interaction.response.send_message("\n".join(lines), ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(AuctionCommand(bot))
