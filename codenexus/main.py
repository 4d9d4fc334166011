from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import uuid
from pathlib import Path

import uvicorn

from codenexus.api.http_app import build_app
from codenexus.domain.errors import DomainValidationError
from codenexus.domain.models import OrchestratorPhase, OrchestratorState
from codenexus.logging_setup import configure_logging
from codenexus.services.bootstrap import RuntimeContainer, build_runtime_container


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit code to the execution-and-analysis service")
    parser.add_argument("--file", type=Path, help="Source file to run; language comes from its extension")
    parser.add_argument("--language", default=None, help="Override the language inferred from --file")
    parser.add_argument("--stdin-file", type=Path, default=None, help="File passed to the program as stdin")
    parser.add_argument("--serve", action="store_true", help="Serve the control API instead of a one-shot run")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("APP_PORT", "8000")))
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate startup and exit",
    )
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.serve and args.file is None and not args.dry_run_startup:
        sys.stderr.write("ERROR: either --file or --serve is required\n")
        return 2

    configure_logging()
    run_id = str(uuid.uuid4())
    logger = logging.getLogger("runtime")
    service_mode = "http" if os.getenv("CODENEXUS_BASE_URL") else "stub"
    logger.info("runtime initialized", extra={"service": service_mode, "run_id": run_id})

    if args.dry_run_startup:
        logger.info("dry-run startup complete", extra={"service": service_mode, "run_id": run_id})
        return 0

    if args.serve:
        container = build_runtime_container()
        app = build_app(
            session=container.session,
            run_id=run_id,
            service_mode=service_mode,
            on_shutdown=container.on_shutdown,
        )
        uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
        return 0

    try:
        return asyncio.run(_run_file(args))
    except (DomainValidationError, OSError, UnicodeDecodeError) as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 2


async def _run_file(args: argparse.Namespace) -> int:
    container = build_runtime_container()
    try:
        return await _submit_file(container, args)
    finally:
        if container.on_shutdown is not None:
            await container.on_shutdown()


async def _submit_file(container: RuntimeContainer, args: argparse.Namespace) -> int:
    session = container.session
    payload = args.file.read_bytes()
    if args.language is None:
        session.upload_code(filename=args.file.name, payload=payload)
    else:
        session.change_language(args.language)
        session.edit_code(payload.decode("utf-8"))
    if args.stdin_file is not None:
        session.upload_stdin(filename=args.stdin_file.name, payload=args.stdin_file.read_bytes())

    state = await session.run()
    _print_state(state)
    return 0 if state.phase is OrchestratorPhase.DONE else 1


def _print_state(state: OrchestratorState) -> None:
    if state.output:
        sys.stdout.write(state.output)
        if not state.output.endswith("\n"):
            sys.stdout.write("\n")
    if state.analysis_report:
        sys.stdout.write("\n" + state.analysis_report)
    if state.error_message:
        sys.stderr.write(state.error_message + "\n")


if __name__ == "__main__":
    raise SystemExit(run())
