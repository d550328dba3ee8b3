"""Automatic replies and reactions to configured words in channel messages."""

from __future__ import annotations

import re

from flobot.client.base import Client
from flobot.core.tempo import Tempo
from flobot.db.base import DatabaseError, TriggerStore
from flobot.handlers.base import Handler
from flobot.models import Post
from flobot.utils.logging import get_logger

log = get_logger(__name__)

COMMAND_PREFIX = "!trigger "
ACK_EMOJI = "ok_hand"
DEFAULT_CHANNEL_RATE_LIMIT = 3.0

# bytes.isspace() also accepts \x0b, which is not a word boundary here.
_ASCII_WHITESPACE = frozenset(b" \t\n\x0c\r")

_MATCH_LIST = re.compile(r"^!trigger list.*$")
_MATCH_DEL = re.compile(r'^!trigger del "(.+)".*')
_MATCH_TEXT = re.compile(r'^!trigger text "([^"]+)" "([^"]+)".*$')
_MATCH_REACTION = re.compile(r'^!trigger reaction "([^"]+)" [:"]([^:]+)[:"].*$')


def compile_trigger(trigger: str) -> re.Pattern[str]:
    """Compile the pattern a stored trigger is matched with. Raises ``re.error``."""
    return re.compile(rf"^.*({re.escape(trigger)}).*$", re.MULTILINE | re.DOTALL)


def valid_match(find: str, message: str) -> bool:
    """True if the first occurrence of ``find`` in ``message`` stands as a word.

    Only the first occurrence is looked at, and only ASCII whitespace (or the
    start/end of the message) counts as a word boundary.
    """
    needle = find.encode("utf-8")
    haystack = message.encode("utf-8")
    if not needle:
        return False

    start = haystack.find(needle)
    if start < 0:
        return False
    end = start + len(needle)

    if start > 0 and haystack[start - 1] not in _ASCII_WHITESPACE:
        return False
    if end < len(haystack) and haystack[end] not in _ASCII_WHITESPACE:
        return False
    return True


class TriggerHandler(Handler):
    def __init__(
        self,
        store: TriggerStore,
        client: Client,
        tempo: Tempo[str],
        repeat_delay: float,
        channel_rate_limit: float = DEFAULT_CHANNEL_RATE_LIMIT,
    ) -> None:
        self._store = store
        self._client = client
        self._tempo = tempo
        self._repeat_delay = repeat_delay
        self._channel_rate_limit = channel_rate_limit

    @property
    def name(self) -> str:
        return "trigger"

    @property
    def help(self) -> str | None:
        return (
            "```\n"
            "Automatically react to a given text in each received message on channels "
            "where the bot is present.\n"
            "\n"
            f"There is a per channel antispam of {self._channel_rate_limit:g} seconds, "
            "avoiding a heated channel to be polluted by the bot.\n"
            "\n"
            "A per [channel, trigger] antispam is effective and currently configured "
            f"at {self._repeat_delay:g} seconds.\n"
            "\n"
            "!trigger list\n"
            '!trigger text "trigger" "me"\n'
            '!trigger reaction "trigger" :emoji:\n'
            '!trigger del "trigger"\n'
            "```"
        )

    def match_trigger(self, message: str, trigger: str) -> bool:
        return valid_match(trigger, message)

    async def handle(self, post: Post) -> None:
        if post.message.startswith(COMMAND_PREFIX):
            await self._handle_command(post)
        else:
            await self._handle_message(post)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    async def _handle_message(self, post: Post) -> None:
        # Per channel rate limit, so a heated discussion is not spammed.
        channel_key = f"{post.team_id}{post.channel_id}--global-channel-rate-limit"
        if self._tempo.exists(channel_key):
            return
        self._tempo.set(channel_key, self._channel_rate_limit)

        triggers = await self._store.search(post.team_id)
        matching = [t for t in triggers if self.match_trigger(post.message, t.triggered_by)]
        # Text triggers win over emoji triggers.
        matching.sort(key=lambda t: t.text is None)

        for trigger in matching:
            trigger_key = (
                f"{post.team_id}{post.channel_id}{trigger.triggered_by}"
                "--trigger-channel-rate-limit"
            )
            if self._tempo.exists(trigger_key):
                continue
            self._tempo.set(trigger_key, self._repeat_delay)

            if trigger.text is not None:
                log.info("trigger_reply", trigger=trigger.triggered_by, channel=post.channel_id)
                await self._client.reply(post, trigger.text)
                break
            if trigger.emoji is not None:
                log.info("trigger_reaction", trigger=trigger.triggered_by, channel=post.channel_id)
                await self._client.reaction(post, trigger.emoji)

    # ------------------------------------------------------------------
    # Management commands
    # ------------------------------------------------------------------

    async def _handle_command(self, post: Post) -> None:
        message = post.message

        if _MATCH_LIST.match(message):
            triggers = await self._store.list(post.team_id)
            await self._client.send_trigger_list(triggers, post)
            return

        m = _MATCH_TEXT.match(message)
        if m:
            await self._add(post, m.group(1), text=m.group(2))
            return

        m = _MATCH_REACTION.match(message)
        if m:
            await self._add(post, m.group(1), emoji=m.group(2))
            return

        m = _MATCH_DEL.match(message)
        if m:
            await self._store.delete(post.team_id, m.group(1))
            await self._client.reaction(post, ACK_EMOJI)

    async def _add(
        self,
        post: Post,
        trigger: str,
        text: str | None = None,
        emoji: str | None = None,
    ) -> None:
        # Refuse triggers that would not compile instead of storing them broken.
        try:
            compile_trigger(trigger)
        except re.error as e:
            await self._client.reply(post, str(e))
            return

        # Store failures are not reported to the user; the command is acknowledged anyway.
        try:
            if text is not None:
                await self._store.add_text(post.team_id, trigger, text)
            else:
                await self._store.add_emoji(post.team_id, trigger, emoji or "")
        except DatabaseError as e:
            log.warning("trigger_store_failed", trigger=trigger, team=post.team_id, error=str(e))

        await self._client.reaction(post, ACK_EMOJI)
