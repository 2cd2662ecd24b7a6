import discord
from discord.ext import commands


class Help(commands.Cog):
    HELP_MESSAGE_TEMPLATE = {
        "embeds": [
            {
                "title": "Help Message",
                "color": 0,
                "fields": [
                    {"name": "Icon Commands",
                     "value": "*Icon Diffs*\n"
                              "`{prefix}icondiff` + one .dmi: list every state of a new icon file\n"
                              "`{prefix}icondiff` + two .dmi: diff before (first) against after (second)\n"},

                    {"name": "Legend",
                     "value": "`+` added  `-` removed  `~` modified  `!` render failed"}
                ]
            }
        ]
    }

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @staticmethod
    def build_embed(prefix: str) -> discord.Embed:
        discord_embed = Help.HELP_MESSAGE_TEMPLATE

        embed = discord.Embed(title="",
                              color=0)

        for item in discord_embed["embeds"][0]["fields"]:
            embed.add_field(name=item["name"],
                            value=item["value"].replace("{prefix}", prefix),
                            inline=False)
        return embed

    @commands.command()
    async def help(self, ctx):
        await ctx.channel.send(embed=Help.build_embed(self.bot.command_prefix))


async def setup(bot: commands.Bot):
    await bot.add_cog(Help(bot))
