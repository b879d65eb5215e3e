"""pneuma.hugo -- the Hugo site content source."""

from pneuma.hugo.frontmatter import FrontMatterError
from pneuma.hugo.site import ContentSourceError, Post, Site, slugify

__all__ = [
    "ContentSourceError",
    "FrontMatterError",
    "Post",
    "Site",
    "slugify",
]
