"""Content extractor that shells out to an external program."""

import asyncio

from structlog.stdlib import BoundLogger

from threadwise.config.models import ExtractorConfig
from threadwise.domain.errors import ContentExtractionError


class SubprocessContentExtractor:
    """ContentExtractor that runs ``[*command, url]`` and reads stdout.

    The program prints the page text on success and exits non-zero when
    the page cannot be read.
    """

    def __init__(self, config: ExtractorConfig, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    async def extract(self, url: str) -> str:
        """Return the main text of the page at ``url``.

        Raises:
            ContentExtractionError: On a non-https URL, a missing program,
                a timeout, or a non-zero exit code.
        """
        if not url.startswith("https://"):
            raise ContentExtractionError(f"Refusing non-https URL: {url}")

        try:
            process = await asyncio.create_subprocess_exec(
                *self._config.command,
                url,
                cwd=self._config.workdir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ContentExtractionError(f"Cannot start content extractor: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._config.timeout
            )
        except TimeoutError as e:
            process.kill()
            await process.wait()
            raise ContentExtractionError(
                f"Content extractor timed out after {self._config.timeout}s"
            ) from e
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            self._logger.warning(
                "Content extractor failed",
                url=url,
                exit_code=process.returncode,
                stderr=stderr.decode(errors="replace").strip()[:500],
            )
            raise ContentExtractionError(
                f"Content extractor exited with {process.returncode}",
                exit_code=process.returncode,
            )

        return stdout.decode(errors="replace").strip()
