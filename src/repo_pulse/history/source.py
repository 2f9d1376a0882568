"""Stream git log output via subprocess."""

from __future__ import annotations

import io
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import ErrorCode, SourceUnavailableError
from ..logging_config import get_logger

logger = get_logger(__name__)

COMMIT_START = "COMMIT_START"
COMMIT_END = "COMMIT_END"

# %P = parent hashes (space-separated), used to detect merge commits
LOG_FORMAT = f"{COMMIT_START}%n%H%n%h%n%an%n%ae%n%aI%n%P%n%s%n{COMMIT_END}"


def is_git_repo(path: str | Path) -> bool:
    try:
        result = subprocess.run(
            ["git", "-C", str(path), "rev-parse", "--git-dir"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _window_args(since: Optional[datetime], until: Optional[datetime]) -> list[str]:
    args = []
    if since is not None:
        args.append(f"--since={since.isoformat(timespec='seconds')}")
    if until is not None:
        args.append(f"--until={until.isoformat(timespec='seconds')}")
    return args


class GitLogSource:
    """Yield raw ``git log --numstat`` lines for one repository.

    The adapter only honours the output contract the parser expects: a
    ``COMMIT_START`` sentinel, seven header lines, ``COMMIT_END``, then
    tab-separated numstat lines. The since/until window is handed to git
    as-is and is not re-validated here.
    """

    def __init__(self, repo_path: str | Path):
        self.repo_path = str(Path(repo_path).resolve())

    def log_command(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> list[str]:
        return [
            "git",
            "-C",
            self.repo_path,
            "log",
            f"--format={LOG_FORMAT}",
            "--numstat",
            *_window_args(since, until),
        ]

    def iter_lines(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> Iterator[str]:
        """Stream log lines without their trailing newline.

        Raises:
            SourceUnavailableError: git could not be started, or exited
                non-zero after the lines already yielded.
        """
        cmd = self.log_command(since, until)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise SourceUnavailableError(
                message=f"Could not start git: {e}",
                code=ErrorCode.RP100,
                context={"repo_path": self.repo_path},
                recoverable=False,
                recovery_hint="Install git and make sure it is on PATH",
            ) from e

        try:
            if proc.stdout is not None:
                # Records end at "\n" only; a lone "\r" can appear inside a subject
                stdout = io.TextIOWrapper(proc.stdout, encoding="utf-8", errors="replace", newline="\n")
                for line in stdout:
                    yield _strip_eol(line)

            stderr = _decode(proc.stderr.read()) if proc.stderr else ""
            returncode = proc.wait()
            if returncode != 0:
                logger.warning("git log failed in %s: %s", self.repo_path, stderr.strip())
                missing = "not a git repository" in stderr.lower()
                raise SourceUnavailableError(
                    message=f"git log exited with status {returncode}",
                    code=ErrorCode.RP102 if missing else ErrorCode.RP101,
                    context={
                        "repo_path": self.repo_path,
                        "returncode": returncode,
                        "stderr": stderr.strip(),
                    },
                    recoverable=False,
                    recovery_hint="Check that the path is a git repository with at least one commit",
                )
        finally:
            # Early close (cancellation, consumer error) must not leak the child
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            if proc.stdout:
                proc.stdout.close()
            if proc.stderr:
                proc.stderr.close()

    def estimate_commit_count(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> int:
        """Commit count in the window, or -1 when git cannot tell."""
        cmd = ["git", "-C", self.repo_path, "rev-list", "--count", "HEAD"]
        cmd.extend(_window_args(since, until))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("rev-list failed: %s", e)
            return -1
        if result.returncode != 0:
            return -1
        try:
            return int(result.stdout.strip())
        except ValueError:
            return -1

    def codebase_size(self) -> int:
        """Total newline count across tracked files; unreadable files are skipped."""
        try:
            result = subprocess.run(
                ["git", "-C", self.repo_path, "ls-files", "-z"],
                capture_output=True,
                timeout=30,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("ls-files failed: %s", e)
            return 0
        if result.returncode != 0:
            return 0

        root = Path(self.repo_path)
        total = 0
        for raw in result.stdout.split(b"\0"):
            if not raw:
                continue
            try:
                with open(root / raw.decode("utf-8", errors="surrogateescape"), "rb") as f:
                    for chunk in iter(lambda: f.read(1024 * 1024), b""):
                        total += chunk.count(b"\n")
            except OSError:
                continue
        return total
