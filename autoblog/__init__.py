"""AutoBlog Director: recurring campaign content generation and WordPress publishing."""
__version__ = "0.1.0"
