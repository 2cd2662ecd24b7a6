"""
Discord UI (buttons) for browsing icon diff results.

Responsibilities:
- Build one embed per DiffRecord with its before/after sprites attached.
- Provide a paged View (Previous / Next / Close) over a list of records.

Permission model:
- Only the user who asked for the diff can page through it (guarded in _guard()).

Important:
- This file does no rendering or diffing; it only displays records.
"""

from __future__ import annotations

import io
from typing import List, Sequence

import discord

from cogs_icondiff.models import DiffRecord
from cogs_icondiff.report import attachment_name, describe

KIND_COLORS = {
    "added": discord.Color.green(),
    "removed": discord.Color.red(),
    "modified": discord.Color.gold(),
    "failed": discord.Color.dark_grey(),
}


def build_record_embed(record: DiffRecord, index: int, total: int, *, title: str = "Icon diff") -> discord.Embed:
    e = discord.Embed(
        title=title,
        description=f"State **{index} of {total}**: {describe(record)}",
        color=KIND_COLORS[record.kind],
    )

    if record.before is not None:
        name = attachment_name(index, "before", record.before)
        e.add_field(name="Old", value=f"`{name}`", inline=True)
        e.set_thumbnail(url=f"attachment://{name}")
    if record.after is not None:
        name = attachment_name(index, "after", record.after)
        e.add_field(name="New", value=f"`{name}`", inline=True)
        e.set_image(url=f"attachment://{name}")

    if record.before is not None and record.after is not None:
        e.set_footer(text=f"{record.before.fingerprint[:12]} → {record.after.fingerprint[:12]}")
    return e

def record_files(record: DiffRecord, index: int) -> List[discord.File]:
    files: List[discord.File] = []
    for side, artifact in (("before", record.before), ("after", record.after)):
        if artifact is None:
            continue
        files.append(discord.File(fp=io.BytesIO(artifact.data), filename=attachment_name(index, side, artifact)))
    return files


class DiffPagerView(discord.ui.View):
    def __init__(self, *, author_id: int, records: Sequence[DiffRecord], title: str = "Icon diff"):
        super().__init__(timeout=900)  # 15 minutes
        self.author_id = author_id
        self.records = list(records)
        self.title = title
        self.current_index = 0
        self.message = None
        self._update_buttons()

    async def on_timeout(self):
        try:
            if self.message:
                for item in self.children:
                    item.disabled = True
                await self.message.edit(view=self)
        except discord.NotFound:
            pass # Message was deleted

    async def _guard(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.author_id:
            await interaction.response.send_message("Only the person who asked for this diff can page it.", ephemeral=True)
            return False
        return True

    def current_embed(self) -> discord.Embed:
        record = self.records[self.current_index]
        return build_record_embed(record, self.current_index + 1, len(self.records), title=self.title)

    def current_files(self) -> List[discord.File]:
        return record_files(self.records[self.current_index], self.current_index + 1)

    def _update_buttons(self):
        self.prev_record.disabled = self.current_index == 0
        self.next_record.disabled = self.current_index >= len(self.records) - 1

    async def _update_view(self, interaction: discord.Interaction):
        self._update_buttons()
        await interaction.response.edit_message(
            embed=self.current_embed(),
            attachments=self.current_files(),
            view=self,
        )

    @discord.ui.button(label="Previous", style=discord.ButtonStyle.secondary)
    async def prev_record(self, interaction: discord.Interaction, _):
        if not await self._guard(interaction): return
        if self.current_index > 0:
            self.current_index -= 1
        await self._update_view(interaction)

    @discord.ui.button(label="Next", style=discord.ButtonStyle.secondary)
    async def next_record(self, interaction: discord.Interaction, _):
        if not await self._guard(interaction): return
        if self.current_index < len(self.records) - 1:
            self.current_index += 1
        await self._update_view(interaction)

    @discord.ui.button(label="Close", style=discord.ButtonStyle.grey)
    async def close_session(self, interaction: discord.Interaction, _):
        if not await self._guard(interaction): return

        for item in self.children:
            item.disabled = True
        await interaction.response.edit_message(view=self)
        self.stop()
