"""pinkeyword - keyword organization for Pinterest SEO workflows."""

__version__ = "0.1.0"
