class TarletError(Exception):
    """Base class for tarlet-specific errors."""


# Opening/reading
class ArchiveOpenError(TarletError):
    """The backing file is missing or unreadable."""


class EmptyArchiveError(TarletError):
    """The archive holds no entries (empty file or a leading terminator block)."""


class MalformedArchiveError(TarletError):
    pass


class MalformedHeaderError(MalformedArchiveError):
    pass


class ChecksumMismatchError(MalformedArchiveError):
    pass


class TruncatedArchiveError(MalformedArchiveError):
    pass


# Lookup
class EntryNotFoundError(TarletError, KeyError):
    def __str__(self):
        # KeyError would repr() the argument
        return Exception.__str__(self)


# Writing
class ArchiveWriteError(TarletError):
    pass


class HeaderFieldOverflowError(TarletError, ValueError):
    pass
