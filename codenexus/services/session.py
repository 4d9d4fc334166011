from __future__ import annotations

import asyncio
from dataclasses import dataclass

from codenexus.domain.errors import DomainValidationError, MissingInputError
from codenexus.domain.languages import (
    LanguageId,
    download_filename,
    language_for_filename,
    needs_input,
    validate_language,
)
from codenexus.domain.models import OrchestratorState, SubmissionRequest
from codenexus.domain.use_cases.build_request import build_request
from codenexus.services.orchestrator import Orchestrator

MISSING_INPUT_MESSAGE = "Please add an input file!"


@dataclass(frozen=True)
class SessionSnapshot:
    language: LanguageId
    code: str
    stdin: str
    file_error: str


class EditorSession:
    """Editor-side state: selected language, code, stdin, last upload error.

    Owned by the presentation layer; the orchestrator only sees the request
    built from it. Changing the language or the code clears stdin and
    invalidates whatever run is still in flight.
    """

    def __init__(self, *, orchestrator: Orchestrator, language: str = "python") -> None:
        self._orchestrator = orchestrator
        resolved = validate_language(language)
        self._language: LanguageId = resolved.id
        self._code = resolved.starter_template
        self._stdin = ""
        self._file_error = ""

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            language=self._language,
            code=self._code,
            stdin=self._stdin,
            file_error=self._file_error,
        )

    def change_language(self, language: str) -> None:
        resolved = validate_language(language)
        self._language = resolved.id
        self._code = resolved.starter_template
        self._stdin = ""
        self._file_error = ""
        self._orchestrator.invalidate(reason="language changed")

    def edit_code(self, code: str) -> None:
        if code == self._code:
            return
        self._code = code
        self._stdin = ""
        self._orchestrator.invalidate(reason="code edited")

    def set_stdin(self, stdin: str) -> None:
        self._stdin = stdin

    def upload_code(self, *, filename: str, payload: bytes) -> None:
        try:
            language = language_for_filename(filename)
            code = _decode_text(payload, filename=filename)
        except DomainValidationError as exc:
            self._file_error = str(exc)
            raise

        self._file_error = ""
        self._language = language.id
        self._code = code
        self._stdin = ""
        self._orchestrator.invalidate(reason="code uploaded")

    def upload_stdin(self, *, filename: str, payload: bytes) -> None:
        self._stdin = _decode_text(payload, filename=filename)

    def export_code(self) -> tuple[str, bytes]:
        return download_filename(self._language), self._code.encode("utf-8")

    def prepare_request(self) -> SubmissionRequest:
        if needs_input(self._language, self._code) and not self._stdin:
            raise MissingInputError(MISSING_INPUT_MESSAGE)
        return build_request(self._language, self._code, self._stdin)

    def start_run(self) -> asyncio.Task[OrchestratorState]:
        return self._orchestrator.start(self.prepare_request())

    async def run(self) -> OrchestratorState:
        return await self._orchestrator.run(self.prepare_request())


def _decode_text(payload: bytes, *, filename: str) -> str:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DomainValidationError(f"{filename} is not a UTF-8 text file") from exc
