"""pneuma -- browse a Hugo site's posts in the terminal and edit them."""

__version__ = "0.1.0"
