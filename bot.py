import discord
import logging
import os
from dotenv import load_dotenv
from discord.ext import commands

from cogs_icondiff.config import load_config

logger = logging.getLogger("icondiff.bot")

EXTENSION_DIRS = ("cogs", "modules")


class IconDiffBot(commands.Bot):
    def __init__(self):
        # Load environment variables
        load_dotenv()
        self.token = os.getenv("TOKEN")
        if not self.token:
            raise ValueError("Bot token not found in environment variables")
        self.cfg = load_config()

        # Initialize intents
        intents = discord.Intents.default()
        intents.message_content = True

        # Call parent constructor
        super().__init__(
            command_prefix=self.cfg["command_prefix"],
            help_command=None,
            intents=intents,
            description="DMI icon diff bot"
        )


    async def setup_hook(self) -> None:
        """
        Load extensions.
        """
        await self.load_cogs()


    async def load_cogs(self) -> None:
        """
        Load all cogs from the extension directories (cogs/ and modules/<group>/).
        """
        loaded_cogs = 0
        for root in EXTENSION_DIRS:
            if not os.path.isdir(root):
                continue
            for dirpath, _, filenames in os.walk(root):
                package = dirpath.replace(os.sep, ".")
                for file in sorted(filenames):
                    if file.startswith("cog") and file.endswith(".py"):
                        try:
                            await self.load_extension(f"{package}.{file[:-3]}")
                            loaded_cogs += 1
                        except commands.ExtensionError:
                            logger.exception("Failed to load extension %s", file)

        logger.info("Successfully loaded %d cogs", loaded_cogs)


    async def on_ready(self) -> None:
        """
        Handler for when the bot is ready.
        """
        await self.change_presence(
            activity=discord.Game(f"Icon diffs | {self.cfg['command_prefix']}help")
        )
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)


def main():
    """
    Main entry point for the bot.
    """
    discord.utils.setup_logging()
    bot = IconDiffBot()
    bot.run(bot.token, log_handler=None)


if __name__ == "__main__":
    main()
