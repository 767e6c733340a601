"""
External translation engines for polytrans.

This module adapts the engines that do the actual translating to a single
call shape: translate(text, target_lang, source_lang, timeout) -> str. A
backend performs exactly one attempt and raises TranslationBackendError
when it fails; retries and fallbacks belong to the invoker.

Two backends are provided:
    - TranslateShellBackend: runs translate-shell ("trans"), which fronts
      Google, Bing, Yandex and other engines, with the text on stdin
    - LibreTranslateBackend: posts to a LibreTranslate HTTP API

License: MIT
"""

import os
import subprocess
from typing import Optional

import requests

from ..config.settings import (
    LIBRETRANSLATE_URL,
    TRANS_COMMAND,
    TRANS_SHELL_ENGINES,
    TRANSLATION_CALL_TIMEOUT,
)
from ..config.logging_config import get_logger
from ..core.string_utils import to_engine_language_code

# Module-level logger for consistent logging.
logger = get_logger(__name__)


class TranslationBackendError(Exception):
    """A single attempt to reach a translation engine failed."""

    def __init__(self, message: str, engine: Optional[str] = None):
        super().__init__(message)
        self.engine = engine


class TranslationBackend:
    """Base class for translation engines."""

    name = "backend"

    def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: str = "auto",
        timeout: float = TRANSLATION_CALL_TIMEOUT
    ) -> str:
        """
        Translate text in a single attempt.

        Raises:
            TranslationBackendError: If the engine could not produce a
                translation.
        """
        raise NotImplementedError


class TranslateShellBackend(TranslationBackend):
    """
    Translate through the translate-shell command-line client.

    The child process runs with LC_ALL=C and LANG=C so that its own
    messages do not depend on the user's locale.

    Attributes:
        engine: translate-shell engine name (google, bing, ...).
        command: Executable to run.
    """

    name = "translate-shell"

    def __init__(self, engine: str = "google", command: str = TRANS_COMMAND):
        self.engine = engine
        self.command = command

    def build_command(self, target_lang: str, source_lang: str = "auto") -> list:
        """Build the argument vector for one translation."""
        return [
            self.command,
            "-e", self.engine,
            "-s", source_lang,
            "-no-init",
            "-no-autocorrect",
            "-b",
            f":{to_engine_language_code(target_lang)}",
        ]

    def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: str = "auto",
        timeout: float = TRANSLATION_CALL_TIMEOUT
    ) -> str:
        env = dict(os.environ, LC_ALL="C", LANG="C")
        try:
            completed = subprocess.run(
                self.build_command(target_lang, source_lang),
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                env=env,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise TranslationBackendError(
                f"{self.command} timed out after {timeout}s", engine=self.engine
            )
        except OSError as e:
            raise TranslationBackendError(
                f"Could not run {self.command}: {e}", engine=self.engine
            )

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise TranslationBackendError(
                f"{self.command} exited with status {completed.returncode}: {stderr}",
                engine=self.engine
            )

        result = (completed.stdout or "").strip()
        if not result:
            raise TranslationBackendError(
                f"{self.command} returned no output", engine=self.engine
            )
        return result


class LibreTranslateBackend(TranslationBackend):
    """
    Translate through a LibreTranslate HTTP endpoint.

    Attributes:
        url: The /translate endpoint.
        session: requests session reused across calls (connection pooling).
    """

    name = "libretranslate"

    def __init__(self, url: str = LIBRETRANSLATE_URL, session: Optional[requests.Session] = None):
        self.url = url
        self.session = session or requests.Session()

    def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: str = "auto",
        timeout: float = TRANSLATION_CALL_TIMEOUT
    ) -> str:
        payload = {
            "q": text,
            "source": source_lang,
            "target": to_engine_language_code(target_lang),
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise TranslationBackendError(f"Request to {self.url} failed: {e}", engine=self.name)

        if response.status_code != 200:
            raise TranslationBackendError(
                f"LibreTranslate returned status code {response.status_code}: {response.text}",
                engine=self.name
            )

        try:
            result = response.json().get("translatedText")
        except (ValueError, AttributeError) as e:
            raise TranslationBackendError(f"Invalid LibreTranslate response: {e}", engine=self.name)

        if not isinstance(result, str) or not result.strip():
            raise TranslationBackendError("LibreTranslate returned no translation", engine=self.name)
        return result.strip()


def get_backend(engine: str) -> TranslationBackend:
    """
    Select the backend for an engine identifier.

    Args:
        engine: "libretranslate", or one of the translate-shell engines.

    Returns:
        TranslationBackend: A backend instance for the engine.

    Raises:
        ValueError: If the engine is not known.

    Example:
        >>> get_backend("bing").engine
        'bing'
    """
    engine = (engine or "").strip().lower()
    if engine == LibreTranslateBackend.name:
        return LibreTranslateBackend()
    if engine in TRANS_SHELL_ENGINES:
        return TranslateShellBackend(engine=engine)
    raise ValueError(
        f"Unknown translation engine '{engine}'. "
        f"Expected one of: {', '.join(TRANS_SHELL_ENGINES + [LibreTranslateBackend.name])}"
    )
