"""Remote template fetching.

A ``link`` selection is fetched into a single, fixed scratch directory that
is wiped before every fetch, so a run never sees content left behind by a
previous one.  Git repositories are shallow-cloned and their ``.git``
metadata removed; ``.zip`` / ``.tar.gz`` archive links are downloaded with
httpx and extracted, flattening the single top-level directory that hosted
archives usually wrap their content in.
"""

from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path

import httpx
from rich.markup import escape

from relax.config import DEFAULT_SCRATCH_DIR
from relax.utils import console, run_command

ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")


class FetchError(Exception):
    """Raised when a remote template cannot be fetched."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


def is_archive_link(link: str) -> bool:
    """Return ``True`` if *link* points at a downloadable archive."""
    path = link.split("?", 1)[0].split("#", 1)[0].lower()
    return path.endswith(ARCHIVE_SUFFIXES)


def clear_scratch_dir(scratch_dir: Path) -> None:
    """Remove *scratch_dir* recursively if it exists."""
    if scratch_dir.is_dir() and not scratch_dir.is_symlink():
        shutil.rmtree(scratch_dir)
    elif scratch_dir.exists() or scratch_dir.is_symlink():
        scratch_dir.unlink()


class RemoteFetcher:
    """Fetches a remote template into the scratch directory.

    Attributes:
        scratch_dir: Fixed fetch target, exclusively owned by one fetch.
        timeout: Seconds allowed for the clone or download.
    """

    def __init__(
        self,
        scratch_dir: str | Path = DEFAULT_SCRATCH_DIR,
        timeout: int = 600,
        git_binary: str = "git",
    ) -> None:
        self.scratch_dir = Path(scratch_dir)
        self.timeout = timeout
        self.git_binary = git_binary

    async def fetch(self, link: str) -> Path:
        """Fetch *link* into :attr:`scratch_dir` and return that path.

        Raises:
            FetchError: On any clone, download or extraction failure.
        """
        link = link.strip()
        if not link:
            raise FetchError("Template link is empty")

        clear_scratch_dir(self.scratch_dir)
        self.scratch_dir.parent.mkdir(parents=True, exist_ok=True)

        if is_archive_link(link):
            await self._download_archive(link)
        else:
            await self._clone(link)
        return self.scratch_dir

    # ------------------------------------------------------------------
    # Git
    # ------------------------------------------------------------------

    async def _clone(self, link: str) -> None:
        cmd = [self.git_binary, "clone", "--depth", "1", link, str(self.scratch_dir)]
        cmd_str = " ".join(cmd)
        console.print(f"  Cloning [bold]{escape(link)}[/bold]...", highlight=False)

        returncode, _, stderr = await run_command(cmd, timeout=self.timeout)
        if returncode != 0:
            raise FetchError(
                f"git clone failed (exit {returncode}): {cmd_str}\n{stderr}",
                command=cmd_str,
                stderr=stderr,
            )

        git_dir = self.scratch_dir / ".git"
        if git_dir.exists():
            shutil.rmtree(git_dir)

    # ------------------------------------------------------------------
    # Archives
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
        )

    async def _download_archive(self, link: str) -> None:
        archive_name = link.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1] or "template"
        archive_path = self.scratch_dir.parent / f"{self.scratch_dir.name}-{archive_name}"
        console.print(f"  Downloading [bold]{escape(link)}[/bold]...", highlight=False)

        try:
            async with self._client() as client:
                async with client.stream("GET", link) as response:
                    response.raise_for_status()
                    with open(archive_path, "wb") as fh:
                        async for chunk in response.aiter_bytes(chunk_size=8192):
                            fh.write(chunk)
        except httpx.HTTPStatusError as exc:
            archive_path.unlink(missing_ok=True)
            raise FetchError(
                f"Download failed with HTTP {exc.response.status_code}: {link}",
                command=f"GET {link}",
            ) from exc
        except httpx.HTTPError as exc:
            archive_path.unlink(missing_ok=True)
            raise FetchError(f"Download failed: {link}: {exc}", command=f"GET {link}") from exc

        try:
            _extract_archive(archive_path, self.scratch_dir)
        finally:
            archive_path.unlink(missing_ok=True)


def _extract_archive(archive_path: Path, target: Path) -> None:
    """Extract *archive_path* into *target*, flattening a single root directory."""
    staging = target.parent / f"{target.name}-extract"
    clear_scratch_dir(staging)
    staging.mkdir(parents=True)

    try:
        if zipfile.is_zipfile(archive_path):
            with zipfile.ZipFile(archive_path) as archive:
                archive.extractall(staging)
        elif tarfile.is_tarfile(archive_path):
            with tarfile.open(archive_path) as archive:
                archive.extractall(staging, filter="data")
        else:
            clear_scratch_dir(staging)
            raise FetchError(f"Not a zip or tar archive: {archive_path.name}")
    except (zipfile.BadZipFile, tarfile.TarError) as exc:
        clear_scratch_dir(staging)
        raise FetchError(f"Cannot extract {archive_path.name}: {exc}") from exc

    items = list(staging.iterdir())
    source = items[0] if len(items) == 1 and items[0].is_dir() else staging
    shutil.move(str(source), str(target))
    clear_scratch_dir(staging)
