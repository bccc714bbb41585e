from typing import Optional

from models.users import User


async def find_account_by_discordid(discord_id: int) -> Optional[User]:
    return await User.get_or_none(discord_id=discord_id)
