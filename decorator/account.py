from discord import Interaction, app_commands

from models.repos.users_repo import find_account_by_discordid


def requires_account():
    async def predicate(interaction: Interaction):
        user = await find_account_by_discordid(interaction.user.id)
        if user is None:
            await interaction.response.send_message(
                "❗ 연결된 경매 계정이 없습니다. 웹에서 디스코드 계정을 먼저 연결해주세요.",
                ephemeral=True
            )
            return False
        return True

    return app_commands.check(predicate)
