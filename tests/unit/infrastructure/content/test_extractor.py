"""Tests for SubprocessContentExtractor."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from threadwise.config.models import ExtractorConfig
from threadwise.domain.errors import ContentExtractionError
from threadwise.infrastructure.content.extractor import SubprocessContentExtractor

URL = "https://example.com/article"


def make_extractor(
    script: str, workdir: Path, timeout: float = 5.0
) -> SubprocessContentExtractor:
    config = ExtractorConfig(
        command=[sys.executable, "-c", script],
        workdir=workdir,
        timeout=timeout,
    )
    return SubprocessContentExtractor(config, logger=structlog.get_logger())


class TestExtract:
    """Tests for extract."""

    async def test_returns_stripped_stdout(self, tmp_path: Path) -> None:
        extractor = make_extractor(
            "import sys; print('  Title of ' + sys.argv[1] + '  ')", tmp_path
        )

        result = await extractor.extract(URL)

        assert result == f"Title of {URL}"

    async def test_runs_in_workdir(self, tmp_path: Path) -> None:
        (tmp_path / "page.txt").write_text("from the workdir")
        extractor = make_extractor("print(open('page.txt').read())", tmp_path)

        assert await extractor.extract(URL) == "from the workdir"

    async def test_non_zero_exit_raises(self, tmp_path: Path) -> None:
        extractor = make_extractor(
            "import sys; sys.stderr.write('boom'); sys.exit(3)", tmp_path
        )

        with pytest.raises(ContentExtractionError) as exc_info:
            await extractor.extract(URL)

        assert exc_info.value.exit_code == 3

    async def test_timeout_raises(self, tmp_path: Path) -> None:
        extractor = make_extractor("import time; time.sleep(10)", tmp_path, timeout=0.2)

        with pytest.raises(ContentExtractionError) as exc_info:
            await extractor.extract(URL)

        assert exc_info.value.exit_code is None
        assert "timed out" in str(exc_info.value)

    async def test_missing_program_raises(self, tmp_path: Path) -> None:
        config = ExtractorConfig(
            command=[str(tmp_path / "does-not-exist")], workdir=tmp_path
        )
        extractor = SubprocessContentExtractor(config, logger=structlog.get_logger())

        with pytest.raises(ContentExtractionError):
            await extractor.extract(URL)

    async def test_non_https_url_rejected(self, tmp_path: Path) -> None:
        extractor = make_extractor("print('unreachable')", tmp_path)

        with pytest.raises(ContentExtractionError):
            await extractor.extract("http://example.com/")

    async def test_cancellation_reaps_process(self, tmp_path: Path) -> None:
        extractor = make_extractor("import time; time.sleep(30)", tmp_path)
        started: list[asyncio.subprocess.Process] = []
        spawn = asyncio.create_subprocess_exec

        async def tracking_spawn(*args, **kwargs) -> asyncio.subprocess.Process:
            process = await spawn(*args, **kwargs)
            started.append(process)
            return process

        with patch("asyncio.create_subprocess_exec", tracking_spawn):
            task = asyncio.create_task(extractor.extract(URL))
            while not started:
                await asyncio.sleep(0.01)
            task.cancel()

            with pytest.raises(asyncio.CancelledError):
                await task

        assert started[0].returncode is not None
