from __future__ import annotations

import datetime as dt
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .models import CommitRecord, ContributorRecord

MESSAGE_MAX_CHARS = 100


class GitError(RuntimeError):
    pass


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    # Histories may hold non-UTF-8 names and messages.
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired:
        raise GitError(f"git {' '.join(args[:2])} timed out after {timeout_s}s in {cwd}") from None
    except OSError as e:
        raise GitError(f"Cannot run git in {cwd}: {e}") from e
    return proc.returncode, proc.stdout, proc.stderr


def get_repo_toplevel(candidate: Path) -> Optional[Path]:
    if not candidate.is_dir():
        return None
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    if code != 0 or not out.strip():
        return None
    return Path(out.strip()).resolve()


def open_repo(path: Path) -> Path:
    top = get_repo_toplevel(path)
    if top is None:
        raise GitError(f"Not a git repository: {path}")
    return top


def get_remote_origin(repo: Path) -> str:
    code, out, _ = run_git(["config", "--get", "remote.origin.url"], cwd=repo)
    if code == 0:
        return out.strip()
    return ""


def remote_path(remote: str) -> str:
    """host/owner/name of a remote URL, with credentials and `.git` removed. Case is kept."""
    r = (remote or "").strip()
    if not r:
        return ""

    if "://" not in r and ":" in r and "@" in r.split(":", 1)[0]:
        left, path = r.split(":", 1)
        host = left.split("@", 1)[1]
        canon = f"{host}/{path}"
    else:
        parsed = urlparse(r)
        if parsed.scheme and parsed.netloc:
            host = parsed.netloc
            if "@" in host:
                host = host.split("@", 1)[1]
            canon = f"{host}/{parsed.path.lstrip('/')}"
        else:
            canon = r

    canon = canon.rstrip("/")
    if canon.lower().endswith(".git"):
        canon = canon[:-4]
    return canon


def canonicalize_remote(remote: str) -> str:
    return remote_path(remote).lower()


def repo_name(repo: Path) -> str:
    """owner/name from the origin remote, else the directory name."""
    path = remote_path(get_remote_origin(repo))
    parts = [p for p in path.replace("\\", "/").split("/") if p]
    if len(parts) >= 3:
        return f"{parts[-2]}/{parts[-1]}"
    return repo.name or "unknown"


def parse_git_timestamp(value: str) -> dt.datetime:
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    d = dt.datetime.fromisoformat(s)
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def list_commits(repo: Path, since: dt.datetime | None = None, until: dt.datetime | None = None) -> list[str]:
    """
    SHAs reachable from HEAD, newest first, keeping commits whose committer
    date lies in [since, until].
    """
    code, out, err = run_git(["log", "HEAD", "--format=%H%x09%cI"], cwd=repo)
    if code != 0:
        raise GitError(f"git log failed in {repo}: {err.strip()[:500]}")

    shas: list[str] = []
    for line in out.splitlines():
        parts = line.strip().split("\t", 1)
        if len(parts) != 2 or not parts[0]:
            continue
        try:
            committed = parse_git_timestamp(parts[1])
        except ValueError:
            continue
        if since is not None and committed < since:
            continue
        if until is not None and committed > until:
            continue
        shas.append(parts[0])
    return shas


def parse_numstat(lines: list[str]) -> tuple[int, int]:
    additions = 0
    deletions = 0
    for line in lines:
        parts = line.split("\t", 2)
        if len(parts) < 3:
            continue
        added_s, deleted_s = parts[0], parts[1]
        if added_s == "-" or deleted_s == "-":
            continue
        try:
            additions += int(added_s)
            deletions += int(deleted_s)
        except ValueError:
            continue
    return additions, deletions


def extract_commit(repo: Path, sha: str) -> CommitRecord:
    code, out, err = run_git(
        ["show", "--no-color", "--numstat", "--format=%H%x00%an%x00%ae%x00%aI%x00%B%x00", sha],
        cwd=repo,
    )
    if code != 0:
        raise GitError(f"git show {sha} failed: {err.strip()[:200]}")
    fields = out.split("\x00", 5)
    if len(fields) != 6:
        raise GitError(f"Unexpected git show output for {sha}")
    full_sha, name, email, author_iso, message, rest = fields
    additions, deletions = parse_numstat(rest.splitlines())
    return CommitRecord(
        sha=full_sha.strip(),
        author_name=name,
        author_email=email,
        timestamp=parse_git_timestamp(author_iso),
        additions=additions,
        deletions=deletions,
        message=message.strip("\n")[:MESSAGE_MAX_CHARS],
    )


def fetch_contributors(repo: Path) -> list[ContributorRecord]:
    code, out, err = run_git(["log", "HEAD", "--format=%an%x09%ae"], cwd=repo)
    if code != 0:
        raise GitError(f"git log failed in {repo}: {err.strip()[:500]}")

    by_email: dict[str, ContributorRecord] = {}
    for line in out.splitlines():
        if not line.strip():
            continue
        name, _, email = line.partition("\t")
        cur = by_email.get(email)
        if cur is None:
            by_email[email] = ContributorRecord(email=email, name=name, commits=1)
        else:
            cur.commits += 1
    return list(by_email.values())
