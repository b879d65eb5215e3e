"""The pneuma application: site selection, the post overview and its commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from pneuma.config import PneumaConfig, SiteConfig
from pneuma.editor import start_editor
from pneuma.hugo import ContentSourceError, Post, Site
from pneuma.tui.commands import Command
from pneuma.tui.components import Table
from pneuma.tui.keys import Key, KeyChord
from pneuma.tui.screen import Screen

logger = logging.getLogger(__name__)

SITE_HEADINGS = ["Choice", "Name", "Path"]
POST_HEADINGS = ["#", "Date", "Title", "Draft"]
DATE_FORMAT = "%Y/%m/%d"

SITES_TITLE = "Sites from config:"
SITE_PROMPT = "Please choose a site (default=1): "
POSTS_TITLE = "Posts from the blog:"
NEW_POST_PROMPT = "Enter a title for the new post: "
DELETE_PROMPT = "Delete post? [y/N]: "

# Layout of both screens: title on row 0, help line on row 1, table from row 3
TITLE_ROW = 0
HELP_ROW = 1
TABLE_ROW = 3


class InvalidChoiceError(ValueError):
    """A numeric selection is not a number or is out of range."""


@dataclass
class AppContext:
    """Everything a screen builder or command needs."""

    screen: Screen
    config: PneumaConfig
    site: Site | None = None


# ---------------------------------------------------------------------------
# Table content
# ---------------------------------------------------------------------------


def parse_selection(text: str, count: int, default: int = 1) -> int:
    """Turn a 1-based choice typed by the user into a 0-based index.

    Empty input selects *default*.
    """
    text = text.strip()
    if not text:
        choice = default
    else:
        try:
            choice = int(text)
        except ValueError:
            raise InvalidChoiceError(f"not a number: {text!r}") from None
    if not 1 <= choice <= count:
        raise InvalidChoiceError(f"choice must be between 1 and {count}")
    return choice - 1


def format_date(post: Post) -> str:
    published = post.published
    return published.strftime(DATE_FORMAT) if published is not None else ""


def post_rows(posts: Sequence[Post]) -> tuple[list[str], list[list[str]]]:
    """Headings and rows of the overview table."""
    rows = [
        [str(i), format_date(post), post.title, str(post.draft)]
        for i, post in enumerate(posts, start=1)
    ]
    return list(POST_HEADINGS), rows


def site_rows(sites: Sequence[SiteConfig]) -> tuple[list[str], list[list[str]]]:
    rows = [[str(i), site.name, str(site.path)] for i, site in enumerate(sites, start=1)]
    return list(SITE_HEADINGS), rows


def help_text(bindings: list[tuple[str, str]]) -> str:
    """``j/down next  k/up previous ...``: chords sharing a description are merged."""
    grouped: dict[str, list[str]] = {}
    for label, description in bindings:
        grouped.setdefault(description, []).append(label)
    return "  ".join(f"{'/'.join(labels)} {description}" for description, labels in grouped.items())


class PostTable:
    """The overview table together with the posts its rows were built from."""

    def __init__(self, table: Table, posts: Sequence[Post]) -> None:
        self.table = table
        self.posts: list[Post] = list(posts)

    @property
    def selected(self) -> Post | None:
        if not self.posts:
            return None
        return self.posts[self.table.index]

    def refresh(self, site: Site) -> None:
        """Show the site's current posts; the cursor is kept when still valid."""
        self.posts = site.posts
        self.table.set_content(*post_rows(self.posts))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class NextItemCommand:
    description = "next"

    def __init__(self, table: Table) -> None:
        self.table = table

    def __call__(self) -> None:
        self.table.next_item()


class PreviousItemCommand:
    description = "previous"

    def __init__(self, table: Table) -> None:
        self.table = table

    def __call__(self) -> None:
        self.table.previous_item()


class _PostCommand:
    """Base for commands acting on the site and the post table.

    Content-source faults are reported on the status line and leave the
    table as it was.
    """

    description = ""

    def __init__(self, ctx: AppContext, posts: PostTable) -> None:
        self.ctx = ctx
        self.posts = posts

    @property
    def site(self) -> Site:
        if self.ctx.site is None:
            raise RuntimeError("no site loaded")
        return self.ctx.site

    def __call__(self) -> None:
        self.ctx.screen.clear_message()
        try:
            self.run()
        except ContentSourceError as e:
            logger.warning("%s failed: %s", self.description, e)
            self.ctx.screen.show_message(f"Error: {e}")

    def run(self) -> None:
        raise NotImplementedError

    def edit(self, post_path: Path) -> None:
        code = start_editor(self.ctx.screen, self.ctx.config.editor, post_path)
        if code != 0:
            self.ctx.screen.show_message(f"Editor exited with status {code}")
        self.site.reload()
        self.posts.refresh(self.site)


class EditPostCommand(_PostCommand):
    description = "edit"

    def run(self) -> None:
        post = self.posts.selected
        if post is None:
            self.ctx.screen.show_message("No post selected")
            return
        self.edit(post.path)


class NewPostCommand(_PostCommand):
    description = "new"

    def run(self) -> None:
        title = self.ctx.screen.wait_for_input(NEW_POST_PROMPT).strip()
        if not title:
            self.ctx.screen.show_message("Cancelled")
            return
        path = self.site.create_post(title)
        self.posts.refresh(self.site)
        self.edit(path)


class DeletePostCommand(_PostCommand):
    description = "delete"

    def run(self) -> None:
        post = self.posts.selected
        if post is None:
            self.ctx.screen.show_message("No post selected")
            return
        if not self.ctx.screen.confirm(DELETE_PROMPT):
            self.ctx.screen.show_message("Not deleted")
            return
        self.site.delete_post(post.path)
        self.posts.refresh(self.site)
        self.ctx.screen.show_message(f"Deleted {post.title}")


class SyncCommand(_PostCommand):
    description = "sync"

    def run(self) -> None:
        self.ctx.screen.show_message("Synchronising...")
        self.ctx.screen.draw()
        self.site.synchronise()
        self.posts.refresh(self.site)
        self.ctx.screen.show_message("Synchronised")


class QuitCommand:
    description = "quit"

    def __init__(self, screen: Screen) -> None:
        self.screen = screen

    def __call__(self) -> None:
        self.screen.close()


class Action(Protocol):
    description: str

    def __call__(self) -> None: ...


def bind(action: Action) -> Command:
    return Command(action, action.description)


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


def site_select(ctx: AppContext, message: str = "") -> SiteConfig | None:
    """Ask which configured site to open.

    Returns the only site straight away when there is just one, and ``None``
    when the user answers ``q``.  A non-empty *message* is shown on the
    status row.
    """
    sites = ctx.config.sites
    if len(sites) == 1:
        return sites[0]

    screen = ctx.screen
    screen.reset()
    screen.add_label(0, TITLE_ROW, SITES_TITLE)
    screen.add_table(0, TABLE_ROW, *site_rows(sites))
    if message:
        screen.show_message(message)

    while True:
        answer = screen.wait_for_input(SITE_PROMPT)
        if answer.strip().lower() == "q":
            return None
        try:
            site = sites[parse_selection(answer, len(sites))]
        except InvalidChoiceError as e:
            screen.show_message(f"Invalid choice: {e}")
            continue
        logger.info("Selected site %s (%s)", site.name, site.path)
        return site


def site_overview(ctx: AppContext) -> PostTable:
    """Build the post overview screen and install its bindings."""
    if ctx.site is None:
        raise RuntimeError("no site loaded")

    screen = ctx.screen
    screen.reset()
    screen.add_label(0, TITLE_ROW, POSTS_TITLE)
    posts = ctx.site.posts
    table = screen.add_table(0, TABLE_ROW, *post_rows(posts))
    post_table = PostTable(table, posts)

    next_item = bind(NextItemCommand(table))
    previous_item = bind(PreviousItemCommand(table))
    commands = {
        KeyChord.of("j"): next_item,
        KeyChord.named(Key.down): next_item,
        KeyChord.of("k"): previous_item,
        KeyChord.named(Key.up): previous_item,
        KeyChord.named(Key.enter): bind(EditPostCommand(ctx, post_table)),
        KeyChord.of("n"): bind(NewPostCommand(ctx, post_table)),
        KeyChord.of("d"): bind(DeletePostCommand(ctx, post_table)),
        KeyChord.of("s"): bind(SyncCommand(ctx, post_table)),
        KeyChord.of("q"): bind(QuitCommand(screen)),
    }
    screen.set_commands(commands)
    screen.add_label(0, HELP_ROW, help_text(screen.registry.describe()))
    return post_table


def run_app(ctx: AppContext, site: SiteConfig | None = None) -> None:
    """Pick a site, load it and run the overview until the user quits.

    The screen must already be started.
    """
    message = ""
    while True:
        chosen = site if site is not None else site_select(ctx, message)
        if chosen is None:
            ctx.screen.close()
            return
        try:
            ctx.site = Site.load(chosen.path, ctx.config.extension, chosen.name)
            break
        except ContentSourceError as e:
            # Only a choice made on the select screen can be made again
            if site is not None or len(ctx.config.sites) == 1:
                raise
            logger.warning("Cannot load site %s: %s", chosen.name, e)
            message = f"Error: {e}"
    site_overview(ctx)
    ctx.screen.run()
