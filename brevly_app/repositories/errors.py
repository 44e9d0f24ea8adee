"""Typed exceptions raised by link repositories."""


class RepositoryError(Exception):
    """Storage rejected or failed an operation."""


class DuplicateShortenedUrlError(RepositoryError):
    """Unique constraint on shortened_url was violated."""

    def __init__(self, shortened_url: str):
        super().__init__(f"Shortened URL '{shortened_url}' already exists")
        self.shortened_url = shortened_url


class LinkNotFoundError(RepositoryError):
    """No link with the given id."""

    def __init__(self, link_id: str):
        super().__init__("Link not found")
        self.link_id = link_id
