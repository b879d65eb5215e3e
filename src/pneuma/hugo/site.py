"""A Hugo site on disk: its posts, new-post scaffolding and git sync."""

from __future__ import annotations

import logging
import re
import subprocess
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from pneuma.hugo import frontmatter

logger = logging.getLogger(__name__)

CONTENT_DIR = "content"
POSTS_SECTION = "posts"
GIT_TIMEOUT = 120


class ContentSourceError(Exception):
    """A post could not be read, written or synchronised."""


@dataclass
class Post:
    title: str
    date: str
    draft: bool
    path: Path

    @property
    def published(self) -> datetime | None:
        """Parsed ``date``; ``None`` when it is missing or malformed."""
        return parse_date(self.date)


def parse_date(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _date_to_str(value: object) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None:
        return ""
    return str(value)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def slugify(title: str) -> str:
    """Lowercase ASCII slug: ``"Hello, World!"`` -> ``"hello-world"``."""
    normalized = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "post"


def _sort_key(post: Post) -> tuple[int, float]:
    published = post.published
    if published is None:
        return (1, 0.0)
    if published.tzinfo is None:
        published = published.astimezone()
    return (0, -published.timestamp())


class Site:
    """Posts of one Hugo site, loaded from ``<root>/content``."""

    def __init__(self, root: Path, extension: str = ".md", name: str | None = None) -> None:
        self.root = Path(root)
        self.extension = extension
        self.name = name or self.root.name
        self._posts: list[Post] = []

    @classmethod
    def load(cls, root: Path, extension: str = ".md", name: str | None = None) -> Site:
        site = cls(root, extension, name)
        site.reload()
        return site

    @property
    def content_dir(self) -> Path:
        return self.root / CONTENT_DIR

    @property
    def posts(self) -> list[Post]:
        return list(self._posts)

    def reload(self) -> None:
        """Rescan the content directory."""
        if not self.content_dir.is_dir():
            raise ContentSourceError(f"no content directory in {self.root}")

        posts: list[Post] = []
        for path in self.content_dir.rglob(f"*{self.extension}"):
            if not path.is_file() or path.stem == "_index":
                continue
            posts.append(self._read_post(path))
        posts.sort(key=_sort_key)
        self._posts = posts
        logger.info("Loaded %d post(s) from %s", len(posts), self.content_dir)

    def _read_post(self, path: Path) -> Post:
        try:
            meta, _ = frontmatter.parse(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, frontmatter.FrontMatterError) as e:
            logger.warning("Cannot read front matter of %s: %s", path, e)
            meta = {}
        title = meta.get("title")
        return Post(
            title=str(title) if title else path.stem,
            date=_date_to_str(meta.get("date")),
            draft=_as_bool(meta.get("draft", False)),
            path=path,
        )

    def create_post(self, title: str) -> Path:
        """Write a draft post titled *title* and return its path."""
        title = title.strip()
        if not title:
            raise ContentSourceError("a post needs a title")

        directory = self.content_dir / POSTS_SECTION
        path = directory / f"{slugify(title)}{self.extension}"
        if path.exists():
            raise ContentSourceError(f"post already exists: {path.relative_to(self.root)}")

        meta = {
            "title": title,
            "date": datetime.now().astimezone().replace(microsecond=0).isoformat(),
            "draft": True,
        }
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_text(frontmatter.dump(meta), encoding="utf-8")
        except OSError as e:
            raise ContentSourceError(f"cannot create {path}: {e}") from e

        logger.info("Created post %s", path)
        self.reload()
        return path

    def delete_post(self, path: Path) -> None:
        """Remove the post at *path*; only files inside the content directory."""
        resolved = Path(path).resolve()
        content = self.content_dir.resolve()
        if not resolved.is_relative_to(content):
            raise ContentSourceError(f"refusing to delete outside {content}: {path}")
        try:
            resolved.unlink()
        except OSError as e:
            raise ContentSourceError(f"cannot delete {path}: {e}") from e

        logger.info("Deleted post %s", path)
        self.reload()

    # ------------------------------------------------------------------
    # git
    # ------------------------------------------------------------------

    def _git(self, *args: str) -> str:
        cmd = ["git", *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.root)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.root,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ContentSourceError(f"git {args[0]} failed: {e}") from e
        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip().splitlines()
            reason = detail[-1] if detail else f"exit status {result.returncode}"
            raise ContentSourceError(f"git {args[0]} failed: {reason}")
        return result.stdout

    def synchronise(self) -> None:
        """Pull, commit every local change and push."""
        self._git("pull", "--rebase")
        self._git("add", "-A")
        if self._git("status", "--porcelain").strip():
            stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self._git("commit", "-m", f"pneuma sync {stamp}")
        else:
            logger.info("Nothing to commit in %s", self.root)
        self._git("push")
        self.reload()
