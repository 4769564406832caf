"""Language/config commands: reload, save and inspect the registries from chat."""
from __future__ import annotations

from typing import Any, Optional

import discord
from discord.ext import commands

from langcfg.context import Registries, get_context


def locale_of(source: Any) -> Optional[str]:
    """Best locale for a command source (interaction, context, member or guild)."""
    candidates = (source, getattr(source, "interaction", None), getattr(source, "guild", None))
    for obj in candidates:
        if obj is None:
            continue
        loc = getattr(obj, "locale", None) or getattr(obj, "preferred_locale", None)
        if loc:
            return str(loc)
    return None


class LangCog(commands.Cog):
    def __init__(self, bot: commands.Bot, registries: Optional[Registries] = None):
        self.bot = bot
        self._registries = registries

    @property
    def registries(self) -> Registries:
        if self._registries is None:
            self._registries = get_context()
        return self._registries

    @commands.command(name="langreload")
    @commands.is_owner()
    async def langreload(self, ctx: commands.Context):
        """Reload all config and language files from disk."""
        configs = self.registries.configs.load_all(verbose=False)
        langs = self.registries.langs.load_all(verbose=False)
        await ctx.send(embed=discord.Embed(title="Reloaded", description=f"{configs} configs, {langs} language files"))

    @commands.command(name="langsave")
    @commands.is_owner()
    async def langsave(self, ctx: commands.Context):
        """Save all config and language files."""
        configs = self.registries.configs.save_all(verbose=False)
        langs = self.registries.langs.save_all(verbose=False)
        await ctx.send(embed=discord.Embed(title="Saved", description=f"{configs} configs, {langs} language files"))

    @commands.command(name="langinfo")
    async def langinfo(self, ctx: commands.Context):
        """Show bound locales and the default locale."""
        langs = self.registries.langs
        files = ", ".join(d.name for d in langs.documents()) or "none"
        desc = f"Default locale: {langs.default_locale}\nBound locales: {len(langs)}\nFiles: {files}"
        await ctx.send(embed=discord.Embed(title="Languages", description=desc))

    @commands.command(name="translate")
    async def translate(self, ctx: commands.Context, key: str):
        """Look up a language key using this server's locale."""
        locale = locale_of(ctx)
        text = self.registries.langs.resolve_string(locale, key)
        await ctx.send(embed=discord.Embed(title=f"Translation ({locale or 'default'})", description=text))


async def setup(bot: commands.Bot):
    await bot.add_cog(LangCog(bot))
