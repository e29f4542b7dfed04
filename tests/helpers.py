"""
Helpers shared by the test modules: JSON fixtures and real git repositories.
"""

import json
import os
import subprocess
from pathlib import Path
from typing import Any


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def run_git(*args: str, cwd: Path) -> str:
    """Run git and return stdout, failing the test on a non-zero exit."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
        env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
    )
    return result.stdout.strip()


def make_remote(root: Path, name: str, branch: str = "main") -> Path:
    """
    Create a bare repository `<root>/remotes/<name>.git` with one commit.

    Returns:
        Path to the bare repository (usable as a clone URL)
    """
    work = root / "seed" / name
    work.mkdir(parents=True)
    run_git("init", "-b", branch, cwd=work)
    (work / "README.md").write_text(f"# {name}\n")
    run_git("add", "README.md", cwd=work)
    run_git("commit", "-m", "Initial commit", cwd=work)

    bare = root / "remotes" / f"{name}.git"
    bare.parent.mkdir(parents=True, exist_ok=True)
    run_git("clone", "--bare", str(work), str(bare), cwd=root)
    return bare


def push_commit(remote: Path, root: Path, filename: str = "CHANGES.md") -> str:
    """Add a commit to `remote` through a scratch clone; returns its sha."""
    scratch = root / "scratch" / f"{remote.stem}-{filename}"
    scratch.parent.mkdir(parents=True, exist_ok=True)
    run_git("clone", str(remote), str(scratch), cwd=root)
    (scratch / filename).write_text("change\n")
    run_git("add", filename, cwd=scratch)
    run_git("commit", "-m", f"Add {filename}", cwd=scratch)
    run_git("push", "origin", "HEAD", cwd=scratch)
    return run_git("rev-parse", "HEAD", cwd=scratch)


def clone_to(remote: Path, target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    run_git("clone", str(remote), str(target), cwd=target.parent)
    return target
