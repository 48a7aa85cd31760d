"""Live translation adapters with deterministic fallback and per-paper caching."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from typing import Protocol, runtime_checkable

from paper_match import fallback_translation
from paper_match.config import AppConfig
from paper_match.errors import TranslationError, TranslationFailed, TranslationUnavailable
from paper_match.models import Paper, TranslatedPaper

logger = logging.getLogger(__name__)

DEFAULT_TRANSLATION_TIMEOUT = 30
_TEXT_SENTINEL = "__PAPER_MATCH_TEXT__"
_SOURCE_SENTINEL = "__PAPER_MATCH_SOURCE__"
_TARGET_SENTINEL = "__PAPER_MATCH_TARGET__"


@runtime_checkable
class Translator(Protocol):
    """Live translation capability.

    Implementations raise TranslationUnavailable when they cannot run at all
    and TranslationFailed when a run produced no usable text.
    """

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str: ...


def _build_argv(command_template: str, text: str, source_lang: str, target_lang: str) -> list[str]:
    """Split the template into argv first, then substitute values per argument.

    Substituting after splitting keeps the text a single argument no matter
    what quotes or spaces it contains.
    """
    if "{text}" not in command_template:
        raise TranslationUnavailable(
            f"Translation command must contain a {{text}} placeholder, got: {command_template!r}"
        )
    templated = (
        command_template.replace("{text}", _TEXT_SENTINEL)
        .replace("{source}", _SOURCE_SENTINEL)
        .replace("{target}", _TARGET_SENTINEL)
    )
    try:
        argv = shlex.split(templated, posix=os.name != "nt")
    except ValueError as e:
        raise TranslationUnavailable(f"Cannot parse translation command: {e}") from e
    if not argv:
        raise TranslationUnavailable("Translation command is empty")
    return [
        arg.replace(_TEXT_SENTINEL, text)
        .replace(_SOURCE_SENTINEL, source_lang)
        .replace(_TARGET_SENTINEL, target_lang)
        for arg in argv
    ]


class CommandTranslator:
    """Translator that runs an external command, e.g. ``trans -b {source}:{target} {text}``.

    The command's stdout is the translation.
    """

    __slots__ = ("_command_template", "_timeout")

    def __init__(self, command_template: str, timeout: int = DEFAULT_TRANSLATION_TIMEOUT) -> None:
        self._command_template = command_template
        self._timeout = timeout

    @property
    def command_template(self) -> str:
        return self._command_template

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        argv = _build_argv(self._command_template, text, source_lang, target_lang)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranslationUnavailable(f"Cannot start {argv[0]!r}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise TranslationFailed(f"Timed out after {self._timeout}s") from e

        if proc.returncode != 0:
            err_msg = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise TranslationFailed(f"Exit {proc.returncode}: {err_msg[:200]}")

        output = (stdout or b"").decode("utf-8", errors="replace").strip()
        if not output:
            raise TranslationFailed("Empty output")
        return output


def resolve_translator(config: AppConfig) -> CommandTranslator | None:
    """Create a live translator from config, or None if not configured."""
    template = config.translation_command.strip()
    if not template:
        return None
    return CommandTranslator(template, timeout=config.request_timeout_seconds)


class TranslationService:
    """Translate text through the live translator, falling back to the phrase table.

    Paper translations are cached by ``(paper_id, target_language)`` and are
    never recomputed once stored.
    """

    def __init__(
        self,
        translator: Translator | None = None,
        *,
        source_lang: str = "en",
        target_lang: str = "ja",
    ) -> None:
        self._translator = translator
        self._source_lang = source_lang
        self._target_lang = target_lang
        self._cache: dict[tuple[str, str], TranslatedPaper] = {}

    @classmethod
    def from_config(cls, config: AppConfig) -> TranslationService:
        return cls(
            resolve_translator(config),
            source_lang=config.source_language,
            target_lang=config.target_language,
        )

    @property
    def target_lang(self) -> str:
        return self._target_lang

    async def translate_text(self, text: str) -> str:
        if not text:
            return text
        if self._translator is None:
            return fallback_translation.translate(text)
        try:
            return await self._translator.translate(text, self._source_lang, self._target_lang)
        except TranslationError as e:
            logger.info("Live translation unavailable, using fallback: %s", e)
            return fallback_translation.translate(text)

    async def batch_translate(self, texts: list[str]) -> list[str]:
        return [await self.translate_text(text) for text in texts]

    def cached(self, paper_id: str) -> TranslatedPaper | None:
        return self._cache.get((paper_id, self._target_lang))

    async def translate_paper(self, paper: Paper) -> TranslatedPaper:
        key = (paper.id, self._target_lang)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        title, abstract = await self.batch_translate([paper.title, paper.abstract])
        # A concurrent call for the same paper may have finished first; keep its result.
        return self._cache.setdefault(
            key,
            TranslatedPaper(
                paper_id=paper.id,
                target_language=self._target_lang,
                title=title,
                abstract=abstract,
            ),
        )


__all__ = [
    "CommandTranslator",
    "TranslationService",
    "Translator",
    "resolve_translator",
]
