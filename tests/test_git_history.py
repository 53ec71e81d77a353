from __future__ import annotations

import datetime as dt
import os
import subprocess
from functools import partial
from pathlib import Path

import pytest

from contributor_insights.git import (
    GitError,
    canonicalize_remote,
    extract_commit,
    fetch_contributors,
    list_commits,
    open_repo,
    parse_numstat,
    remote_path,
    repo_name,
)
from contributor_insights.pool import process_ordered

UTC = dt.timezone.utc


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _commit_file(*, repo: Path, filename: str, content: str, date: str, name: str, email: str, message: str = "") -> None:
    p = repo / filename
    p.write_text(content, encoding="utf-8")
    _run(["git", "add", filename], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_DATE"] = date
    env["GIT_COMMITTER_DATE"] = date
    env["GIT_AUTHOR_NAME"] = name
    env["GIT_AUTHOR_EMAIL"] = email
    _run(["git", "commit", "-m", message or f"update {filename}"], cwd=repo, env=env)


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    r = tmp_path / "kafka"
    r.mkdir()
    _run(["git", "init"], cwd=r)
    _run(["git", "config", "user.name", "Committer"], cwd=r)
    _run(["git", "config", "user.email", "committer@example.com"], cwd=r)
    _commit_file(repo=r, filename="a.txt", content="1\n2\n3\n", date="2024-01-15T10:00:00+00:00", name="Alice", email="alice@acme.com")
    _commit_file(repo=r, filename="a.txt", content="1\n3\n", date="2024-04-20T10:00:00+00:00", name="Bob", email="bob@gmail.com")
    _commit_file(
        repo=r,
        filename="b.txt",
        content="x\n",
        date="2024-07-01T10:00:00+00:00",
        name="Alice",
        email="alice@acme.com",
        message="m" * 150,
    )
    return r


def test_list_and_extract_commits(repo: Path) -> None:
    shas = list_commits(repo)
    assert len(shas) == 3
    records = [extract_commit(repo, s) for s in shas]
    # newest first
    assert [r.author_email for r in records] == ["alice@acme.com", "bob@gmail.com", "alice@acme.com"]
    newest, middle, oldest = records
    assert (oldest.additions, oldest.deletions) == (3, 0)
    assert (middle.additions, middle.deletions) == (0, 1)
    assert oldest.timestamp == dt.datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
    assert oldest.sha == shas[-1]
    assert len(newest.message) == 100
    assert middle.message == "update a.txt"


def test_list_commits_date_filters_are_inclusive(repo: Path) -> None:
    since = dt.datetime(2024, 4, 20, 10, 0, tzinfo=UTC)
    assert len(list_commits(repo, since=since)) == 2
    until = dt.datetime(2024, 4, 20, 10, 0, tzinfo=UTC)
    assert len(list_commits(repo, until=until)) == 2
    assert len(list_commits(repo, since=since, until=until)) == 1


def test_extract_unknown_sha_raises(repo: Path) -> None:
    with pytest.raises(GitError):
        extract_commit(repo, "0" * 40)


def test_fetch_contributors_dedupes_by_email(repo: Path) -> None:
    contributors = {c.email: c for c in fetch_contributors(repo)}
    assert set(contributors) == {"alice@acme.com", "bob@gmail.com"}
    assert contributors["alice@acme.com"].commits == 2
    assert contributors["alice@acme.com"].name == "Alice"


def test_repo_name_falls_back_to_directory(repo: Path) -> None:
    assert repo_name(repo) == "kafka"
    _run(["git", "remote", "add", "origin", "https://github.com/apache/kafka.git"], cwd=repo)
    assert repo_name(repo) == "apache/kafka"


def test_open_repo_rejects_non_repo(tmp_path: Path) -> None:
    with pytest.raises(GitError):
        open_repo(tmp_path / "missing")


def test_canonicalize_remote() -> None:
    assert canonicalize_remote("git@github.com:Apache/Kafka.git") == "github.com/apache/kafka"
    assert canonicalize_remote("https://user@github.com/apache/kafka/") == "github.com/apache/kafka"
    assert canonicalize_remote("") == ""


def test_parse_numstat_skips_binary_rows() -> None:
    assert parse_numstat(["3\t1\ta.py", "-\t-\timg.png", "", "x\t1\tbad"]) == (3, 1)


def test_repo_name_keeps_remote_case(repo: Path) -> None:
    _run(["git", "remote", "add", "origin", "git@github.com:Apache/Kafka.git"], cwd=repo)
    assert repo_name(repo) == "Apache/Kafka"
    assert remote_path("https://github.com/Apache/Kafka.GIT") == "github.com/Apache/Kafka"


def test_latin1_history_is_read_not_dropped(tmp_path: Path) -> None:
    r = tmp_path / "legacy"
    r.mkdir()
    _run(["git", "init"], cwd=r)
    tree = subprocess.run(["git", "hash-object", "-t", "tree", "-w", "--stdin"], cwd=str(r), input=b"", check=True, capture_output=True)
    empty_tree = tree.stdout.decode("ascii").strip()
    raw = (
        f"tree {empty_tree}\n".encode("ascii")
        + b"author Ren\xe9 <rene@acme.com> 1700000000 +0000\n"
        + b"committer Ren\xe9 <rene@acme.com> 1700000000 +0000\n"
        + b"\n"
        + b"caf\xe9 fix\n"
    )
    proc = subprocess.run(
        ["git", "hash-object", "-t", "commit", "-w", "--stdin"],
        cwd=str(r),
        input=raw,
        check=True,
        capture_output=True,
    )
    sha = proc.stdout.decode("ascii").strip()
    _run(["git", "update-ref", "HEAD", sha], cwd=r)

    contributors = fetch_contributors(r)
    assert len(contributors) == 1
    assert contributors[0].email == "rene@acme.com"

    result = process_ordered(list_commits(r), partial(extract_commit, r))
    assert result.skipped == 0
    assert [c.sha for c in result.items] == [sha]
    assert result.items[0].author_email == "rene@acme.com"
    assert result.items[0].message.endswith(" fix")


def test_run_git_failures_become_git_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PATH", str(tmp_path))
    with pytest.raises(GitError):
        open_repo(tmp_path)


def test_run_git_timeout_becomes_git_error(repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr("contributor_insights.git.subprocess.run", _slow)
    with pytest.raises(GitError, match="timed out"):
        list_commits(repo)
