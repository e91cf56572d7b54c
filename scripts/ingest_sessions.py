#!/usr/bin/env python3
"""Ingest local JSONL session files straight into the database.

Accepts either a directory laid out as ``<root>/<project>/*.jsonl`` (for
example ``~/.claude/projects``) or a single ``.jsonl`` file. Files that
were ingested before only have their new lines stored.
"""

import asyncio
import logging
import sys

from core.config import get_settings
from core.database import close_db, get_session_maker
from core.exceptions import BaseAPIException
from services.ingestion import ChunkedSource, IngestionOrchestrator, SqlAlchemyRecordStore
from services.ingestion.local_files import file_size, scan_session_files
from services.session_service import SessionUploadService

settings = get_settings()
logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


async def ingest_all(target: str, project: str = None, stop_on_error: bool = False) -> int:
    """Ingest every session file under ``target``; returns the failure count."""
    projects = scan_session_files(target, project)
    total = sum(len(files) for files in projects.values())
    if not total:
        logger.warning("No JSONL files found")
        return 0

    session_maker = get_session_maker()
    orchestrator = IngestionOrchestrator(SqlAlchemyRecordStore(session_maker))

    succeeded = 0
    failed = 0
    try:
        for project_name, files in projects.items():
            logger.info(f"Project: {project_name}")
            for path in files:
                size = file_size(path)
                source = ChunkedSource.from_file(str(path), settings.INGEST_STREAM_CHUNK_SIZE, size=size)
                async with session_maker() as db:
                    service = SessionUploadService(db, orchestrator)
                    try:
                        _, result = await service.upload(project_name, path.name, source, file_size=size)
                    except BaseAPIException as e:
                        result = None
                        error = e.message
                    else:
                        error = result.error

                if result is not None and result.success:
                    succeeded += 1
                    if result.new_lines or result.errors:
                        logger.info(
                            f"  {path.name} - {result.new_lines} new lines added"
                            + (f", {result.errors} not valid JSON" if result.errors else "")
                        )
                    else:
                        logger.info(f"  {path.name} - Already up to date")
                    continue

                failed += 1
                logger.error(f"  {path.name} - {error}")
                if stop_on_error:
                    logger.error("Stopping due to error (--stop-on-error)")
                    return failed
    finally:
        await close_db()

    logger.info(f"Ingestion complete: {succeeded} succeeded, {failed} failed")
    return failed


async def main():
    """Main function for standalone execution."""
    import argparse
    parser = argparse.ArgumentParser(description="Ingest local JSONL session files")
    parser.add_argument("target", help="Directory of <project>/*.jsonl files, or a single .jsonl file")
    parser.add_argument("--project", default=None,
                        help="Project name to use instead of the parent directory name")
    parser.add_argument("--stop-on-error", action="store_true",
                        help="Stop at the first file that fails")
    args = parser.parse_args()

    try:
        failed = await ingest_all(args.target, args.project, args.stop_on_error)
    except BaseAPIException as e:
        logger.error(e.message)
        sys.exit(1)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
