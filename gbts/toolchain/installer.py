# ==============================================
# GBDK installer
# ==============================================
#
# PURPOSE:
#   Fetch the gbdk-n sources to gbdk_path (./bin/gbdk-n-master by
#   default) so the build steps can find them.
#
#   1. Download the master zip (streamed, redirects followed)
#   2. Extract it next to gbdk_path, keeping the scripts executable
#   3. Delete the zip
#   4. Rename gbdk-n-master to gbdk_path when the names differ
#
# USAGE:
#   gbts-install
#
# ==============================================

import os
import sys
import zipfile
from pathlib import Path
from typing import Optional

import requests

from gbts.config import AppConfig, load_config
from gbts.errors import CompilationError, GBTSError
from gbts.logger import Logger


ZIP_NAME = "gbdk.zip"
ARCHIVE_ROOT = "gbdk-n-master"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def download(url: str, destination: Path, timeout: float = 120.0,
             session: Optional[requests.Session] = None) -> Path:
    """Stream url into destination. A partial file is removed on failure."""
    http = session or requests
    try:
        with http.get(url, stream=True, allow_redirects=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        destination.unlink(missing_ok=True)
        raise CompilationError(f"Failed to download GBDK from {url}: {e}", cause=e) from e
    return destination


def extract(archive: zipfile.ZipFile, target_dir: Path) -> None:
    """Extract every member, restoring the Unix permission bits zipfile drops."""
    for info in archive.infolist():
        path = archive.extract(info, target_dir)
        mode = (info.external_attr >> 16) & 0o777
        if info.create_system == 3 and mode:
            os.chmod(path, mode)


def install_gbdk(config: AppConfig, bin_dir: Optional[Path] = None,
                 session: Optional[requests.Session] = None) -> Path:
    """
    Download and extract gbdk-n.

    The archive unpacks to gbdk-n-master. When gbdk_path has another
    name, the extracted directory is renamed to it.

    Args:
        config: Supplies gbdk_path, the download URL and the request timeout
        bin_dir: Install into bin_dir/gbdk-n-master instead of gbdk_path
        session: Optional requests session

    Returns:
        The GBDK directory
    """
    gbdk_path = Path(bin_dir) / ARCHIVE_ROOT if bin_dir else Path(config.toolchain.gbdk_path)
    target_dir = gbdk_path.parent
    target_dir.mkdir(parents=True, exist_ok=True)
    zip_path = target_dir / ZIP_NAME

    Logger.start_loading(f"Downloading GBDK from {config.toolchain.gbdk_url}")
    download(config.toolchain.gbdk_url, zip_path, timeout=config.toolchain.request_timeout, session=session)
    Logger.success("GBDK downloaded")

    Logger.start_loading("Extracting GBDK")
    try:
        with zipfile.ZipFile(zip_path) as archive:
            extract(archive, target_dir)
    except zipfile.BadZipFile as e:
        raise CompilationError(f"Downloaded GBDK archive is not a valid zip: {e}", cause=e) from e
    finally:
        zip_path.unlink(missing_ok=True)

    extracted = target_dir / ARCHIVE_ROOT
    if not extracted.is_dir():
        raise CompilationError(f"GBDK archive has no {ARCHIVE_ROOT} directory")
    Logger.success(f"GBDK extracted to {extracted}")

    if extracted != gbdk_path:
        if gbdk_path.exists():
            Logger.warn(f"{gbdk_path} already exists, GBDK left in {extracted}")
            return extracted
        extracted.rename(gbdk_path)
        Logger.info(f"Moved {extracted} to {gbdk_path}")

    return gbdk_path


def main() -> int:
    try:
        install_gbdk(load_config())
    except GBTSError as e:
        Logger.stop_loading()
        Logger.error(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
