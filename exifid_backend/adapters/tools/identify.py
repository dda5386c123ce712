"""
ImageMagick `identify` adapter: dumps EXIF/date tags as `name=value` lines.
"""
import asyncio
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ...config import IDENTIFY_MAX_WORKERS, IDENTIFY_MIN_VERSION, IDENTIFY_TIMEOUT
from ...shared import ErrorCode, Result, get_logger
from ...tool_detect import has_identify

logger = get_logger(__name__)

# All EXIF tags, all date tags, then geometry and resolution; `\n` is
# expanded by identify itself.
IDENTIFY_FORMAT = (
    "%[exif:*]\\n"
    "%[date:*]\\n"
    "width=%w\\n"
    "height=%h\\n"
    "xResolution=%x\\n"
    "yResolution=%y\\n"
)

# Seconds to wait for a killed process to be reaped
_REAP_TIMEOUT = 5.0


def _decode_output(blob: Optional[bytes]) -> Tuple[str, bool]:
    """
    Decode process output, falling back to cp1252 then lossy UTF-8.

    Returns:
      (text, had_replacement_chars)
    """
    if not blob:
        return "", False
    raw = bytes(blob)
    for enc in ("utf-8", "utf-8-sig"):
        try:
            return raw.decode(enc, errors="strict"), False
        except UnicodeDecodeError:
            pass
    try:
        return raw.decode("cp1252", errors="strict"), False
    except UnicodeDecodeError:
        pass
    text = raw.decode("utf-8", errors="replace")
    return text, ("\ufffd" in text)


class Identify:
    """
    `identify` wrapper returning raw tag text.

    Never raises exceptions - always returns Result.
    """

    def __init__(
        self,
        bin_name: str = "identify",
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        min_version: Optional[str] = None,
    ):
        """
        Initialize the adapter.

        Args:
            bin_name: identify binary name or path
            timeout: Command timeout in seconds
            max_workers: Parallel processes for batch reads
            min_version: Minimum ImageMagick version; empty disables the check
        """
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(IDENTIFY_TIMEOUT)
        self._max_workers = max(1, int(max_workers if max_workers is not None else IDENTIFY_MAX_WORKERS))
        self.min_version = (min_version if min_version is not None else IDENTIFY_MIN_VERSION or "").strip()
        self._resolved_bin: Optional[str] = None
        self._unavailable_reason = f"identify not found: {self.bin}"
        self._available = self._check_available()

    def _resolve_executable(self, bin_name: str) -> Optional[str]:
        """
        Resolve and validate the identify executable.

        Rejects command strings so only a real binary path is ever executed.
        """
        raw = (bin_name or "").strip()
        if not self._is_safe_executable_token(raw):
            return None
        resolved = self._resolve_executable_path(raw)
        if not resolved:
            return None
        return resolved if self._looks_like_identify_name(resolved) else None

    @staticmethod
    def _is_safe_executable_token(raw: str) -> bool:
        if not raw:
            return False
        if "\x00" in raw or "\n" in raw or "\r" in raw:
            return False
        return not any(ch in raw for ch in ("&", "|", ";", ">", "<"))

    @staticmethod
    def _resolve_executable_path(raw: str) -> Optional[str]:
        resolved = shutil.which(raw)
        if resolved:
            return resolved
        try:
            candidate = Path(raw)
            if candidate.is_file():
                return str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
        return None

    @staticmethod
    def _looks_like_identify_name(resolved: str) -> bool:
        # ImageMagick 7 also ships `magick`, invoked as `magick identify`
        name = Path(resolved).name.lower()
        return name.startswith("identify") or name.startswith("magick")

    def _check_available(self) -> bool:
        resolved = self._resolve_executable(self.bin)
        if not resolved:
            logger.debug("identify binary not usable: %s", self.bin)
            return False
        if self.min_version and not has_identify(resolved, self.min_version):
            self._unavailable_reason = f"identify failed version check (minimum {self.min_version}): {self.bin}"
            return False
        self._resolved_bin = resolved
        return True

    def is_available(self) -> bool:
        """Check if identify is available."""
        return self._available

    def _availability_error(self) -> Optional[Result[str]]:
        if self._available:
            return None
        return Result.Err(
            ErrorCode.TOOL_MISSING,
            self._unavailable_reason,
            quality="none",
        )

    @staticmethod
    def _validate_path(path: str) -> Result[str]:
        if not path or "\x00" in str(path):
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid file path", quality="none")
        p = Path(str(path))
        if not p.is_file():
            return Result.Err(ErrorCode.NOT_FOUND, f"File not found: {path}", quality="none")
        return Result.Ok(str(path))

    def _prepare(self, path: str) -> Result[str]:
        availability_error = self._availability_error()
        if availability_error is not None:
            return availability_error
        return self._validate_path(path)

    def build_command(self, path: str) -> List[str]:
        binary = self._resolved_bin or self.bin
        cmd = [binary]
        if Path(binary).name.lower().startswith("magick"):
            cmd.append("identify")
        # A leading dash would be read as an option
        target = f".{os.sep}{path}" if str(path).startswith("-") else str(path)
        cmd.extend(["-format", IDENTIFY_FORMAT, target])
        return cmd

    def _run_process(self, cmd: List[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=False,
            check=False,
            timeout=self.timeout,
            shell=False,
            close_fds=os.name != "nt",
        )

    def _timeout_error(self, path: str) -> Result[str]:
        logger.error(f"identify timeout for {path}")
        return Result.Err(
            ErrorCode.TIMEOUT,
            f"identify timeout after {self.timeout}s",
            quality="degraded",
        )

    def _parse_output(
        self,
        stdout: Optional[bytes],
        stderr: Optional[bytes],
        returncode: Optional[int],
        path: str,
    ) -> Result[str]:
        out_text, out_rep = _decode_output(stdout)
        err_text, _ = _decode_output(stderr)
        if returncode != 0:
            stderr_msg = err_text.strip()
            logger.warning(f"identify error for {path}: {stderr_msg}")
            return Result.Err(
                ErrorCode.IDENTIFY_ERROR,
                stderr_msg or "identify command failed",
                return_code=returncode,
                quality="degraded",
            )
        if out_rep:
            logger.warning("identify output contained decoding replacement characters for %s", path)
        return Result.Ok(out_text, quality="degraded" if out_rep else "full")

    def read(self, path: str) -> Result[str]:
        """
        Run identify on a file.

        Args:
            path: Image file path

        Returns:
            Result with the raw `name=value` text
        """
        prepared = self._prepare(path)
        if not prepared.ok:
            return prepared

        try:
            process = self._run_process(self.build_command(path))
            return self._parse_output(process.stdout, process.stderr, process.returncode, path)
        except subprocess.TimeoutExpired:
            return self._timeout_error(path)
        except OSError as e:
            logger.error(f"identify failed to start: {e}")
            return Result.Err(ErrorCode.IDENTIFY_ERROR, str(e), quality="degraded")

    async def aread(self, path: str) -> Result[str]:
        """
        Async variant of read() using asyncio subprocess execution.
        """
        prepared = self._prepare(path)
        if not prepared.ok:
            return prepared

        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                close_fds=os.name != "nt",
            )
        except OSError as e:
            logger.error(f"identify failed to start: {e}")
            return Result.Err(ErrorCode.IDENTIFY_ERROR, str(e), quality="degraded")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=_REAP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("identify process for %s did not exit after kill", path)
            return self._timeout_error(path)
        return self._parse_output(stdout, stderr, process.returncode, path)

    def read_batch(self, paths: List[str]) -> Dict[str, Result[str]]:
        """
        Run identify over several files with a bounded thread pool.

        Returns:
            Dict mapping file path to Result with raw text
        """
        if not paths:
            return {}
        availability_error = self._availability_error()
        if availability_error is not None:
            return {str(p): availability_error for p in paths}

        from concurrent.futures import ThreadPoolExecutor, as_completed
        results: Dict[str, Result[str]] = {}
        max_workers = min(self._max_workers, len(paths))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_path = {executor.submit(self.read, path): path for path in paths}
            for future in as_completed(future_to_path):
                path = future_to_path[future]
                results[str(path)] = future.result()

        return results

    async def aread_batch(self, paths: List[str]) -> Dict[str, Result[str]]:
        """
        Async batch variant using bounded asyncio concurrency.
        """
        if not paths:
            return {}
        availability_error = self._availability_error()
        if availability_error is not None:
            return {str(p): availability_error for p in paths}

        sem = asyncio.Semaphore(min(self._max_workers, len(paths)))
        results: Dict[str, Result[str]] = {}

        async def _one(path: str):
            async with sem:
                results[str(path)] = await self.aread(path)

        await asyncio.gather(*[_one(p) for p in paths])
        return results
