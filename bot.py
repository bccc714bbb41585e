# bot.py
import os
import discord
from discord.ext import commands
from dotenv import load_dotenv
from tortoise import Tortoise

import logging

from service.event.event_bus import EventBus
from service.notification import DiscordAuctionNotifier, auction_dispatcher

# 로그 기본 설정
logging.basicConfig(
    level=logging.INFO,  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

load_dotenv()

APPLICATION_ID = int(os.getenv('APPLICATION_ID') or 0)
TOKEN = os.getenv('DISCORD_TOKEN')
GUILD_ID = int(os.getenv('GUILD_ID') or 0)

DATABASE_URL = os.getenv('DATABASE_URL')
DATABASE_USER = os.getenv('DATABASE_USER')
DATABASE_PASSWORD = os.getenv('DATABASE_PASSWORD')
DATABASE_PORT = int(os.getenv('DATABASE_PORT') or 0)
DATABASE_TABLE = os.getenv('DATABASE_TABLE')


def build_db_url() -> str:
    """DATABASE_URL이 DSN이면 그대로, 호스트명이면 MySQL DSN 조립"""
    if not DATABASE_URL:
        raise RuntimeError("환경변수 DATABASE_URL을 .env에 설정해주세요")

    if "://" in DATABASE_URL:
        return DATABASE_URL

    if not DATABASE_USER or not DATABASE_PASSWORD or not DATABASE_PORT or not DATABASE_TABLE:
        raise RuntimeError("데이터 베이스 설정에 필요한 정보가 부족합니다 .env를 확인해주세요")

    return f"mysql://{DATABASE_USER}:{DATABASE_PASSWORD}@{DATABASE_URL}:{DATABASE_PORT}/{DATABASE_TABLE}"


class AuctionBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        super().__init__(
            command_prefix="!",
            intents=intents,
            application_id=APPLICATION_ID
        )
        self.notifier = DiscordAuctionNotifier(self)

    async def setup_hook(self):
        logging.info("데이터 베이스 연결 시작")
        await self.init_db()
        logging.info("데이터 베이스 연결")

        # 커밋 후 알림: 큐 워커 → EventBus → DM
        self.notifier.subscribe(EventBus())
        auction_dispatcher.start()

        for fn in os.listdir("./cogs"):
            if fn.endswith(".py") and not fn.startswith("_"):
                await self.load_extension(f"cogs.{fn[:-3]}")
                logging.info(f"Loaded cogs.{fn[:-3]}")

        if GUILD_ID:
            guild = discord.Object(id=GUILD_ID)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        else:
            synced = await self.tree.sync()
        logging.info(f"커맨드 {len(synced)}개 synced: {[c.name for c in synced]}")

    async def init_db(self):
        await Tortoise.init(
            db_url=build_db_url(),
            modules={"models": ["models"]},
            use_tz=True,
            timezone="UTC"
        )
        await Tortoise.generate_schemas()

    async def close(self):
        await auction_dispatcher.stop()
        self.notifier.unsubscribe(EventBus())
        await super().close()
        await Tortoise.close_connections()
        logging.info("데이터 베이스 연결 종료")

    async def on_ready(self):
        logging.info(f"Logged in as {self.user} (ID: {self.user.id})")


if __name__ == "__main__":
    if not TOKEN or not APPLICATION_ID:
        raise RuntimeError("환경변수 DISCORD_TOKEN, APPLICATION_ID를 .env에 모두 설정해주세요")

    bot = AuctionBot()
    bot.run(TOKEN)
