"""
IconDiffCog: the Discord-facing layer for the icon diff engine.

Responsibilities:
- f.icondiff with .dmi attachments:
    - one attachment: treated as a newly added file (every state is "added")
    - two attachments: first is before, second is after
- Read attachments (size-capped), render both sides off the event loop,
  and diff them.
- Post a numbered summary, then a paged view with before/after sprites.

Notes:
- All rendering goes through cogs_icondiff.processing, which is pure.
- Grammar errors in a .dmi abort that diff and are reported back;
  undecodable images come back as a "render failed" record.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import discord
from discord.ext import commands

from cogs_icondiff.config import load_config
from cogs_icondiff.errors import DmiParseError
from cogs_icondiff.models import DiffRecord
from cogs_icondiff.processing import generate_diffs_async, is_icon_path
from cogs_icondiff.report import summarize
from cogs_icondiff.views import DiffPagerView

logger = logging.getLogger(__name__)


class IconDiffCog(commands.Cog):
    """
    Icon sheet diffs on demand:
    - attach one or two .dmi files
    - get a summary of added/removed/modified states
    - page through the changed sprites
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.cfg = load_config()
        self.sem = asyncio.Semaphore(int(self.cfg["max_concurrent_diffs"]))

    async def _read(self, attachment: discord.Attachment) -> bytes:
        limit = int(self.cfg["max_attachment_bytes"])
        if attachment.size > limit:
            raise commands.BadArgument(f"`{attachment.filename}` is larger than {limit // 1024} KiB.")
        return await attachment.read()

    async def diff_attachments(self, attachments: List[discord.Attachment]) -> List[DiffRecord]:
        before: Optional[bytes] = None
        if len(attachments) == 2:
            before = await self._read(attachments[0])
        after = await self._read(attachments[-1])

        async with self.sem:
            return await generate_diffs_async(before, after)

    @commands.command(name="icondiff")
    async def icondiff(self, ctx: commands.Context):
        """Diff two .dmi attachments (before, after), or list the states of one."""
        attachments = [a for a in ctx.message.attachments if is_icon_path(a.filename)]
        if len(attachments) not in (1, 2):
            await ctx.send("Attach one `.dmi` (new file) or two `.dmi` files (before, then after).")
            return

        path = attachments[-1].filename
        try:
            records = await self.diff_attachments(attachments)
        except commands.BadArgument as e:
            await ctx.send(f"❌ {e}")
            return
        except DmiParseError as e:
            logger.info("Rejected %s: %s", path, e)
            await ctx.send(f"❌ `{path}` has an invalid DMI description: `{e}`")
            return

        await ctx.send(summarize(records, path=path, max_chars=int(self.cfg["max_summary_chars"])))
        if not records:
            return

        shown = records[:int(self.cfg["max_records_to_post"])]
        view = DiffPagerView(author_id=ctx.author.id, records=shown, title=path)
        view.message = await ctx.send(embed=view.current_embed(), files=view.current_files(), view=view)

    @icondiff.error
    async def icondiff_error(self, ctx: commands.Context, error: commands.CommandError):
        logger.exception("icondiff failed", exc_info=error)
        await ctx.send(f"❌ Icon diff failed: `{getattr(error, 'original', error)}`")


async def setup(bot: commands.Bot):
    await bot.add_cog(IconDiffCog(bot))
