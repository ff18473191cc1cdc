class RepositoryError(Exception):
    """Raised when a player, match or watermark store cannot be read or written.

    Data-quality problems in match rows are never raised; they are reported in
    result objects instead.
    """
