# Block geometry
BLOCK_SIZE = 512
HEADER_SIZE = BLOCK_SIZE
ZERO_BLOCK = b"\x00" * BLOCK_SIZE

# Header record layout: name, mode, uid, gid, size, mtime, chksum, typeflag, linkname, reserved
HEADER_FORMAT = "100s8s8s8s12s12s8sc100s255s"

NAME_FIELD_LEN = 100
LINKNAME_FIELD_LEN = 100
CHECKSUM_OFFSET = 148
CHECKSUM_FIELD_LEN = 8

# Seed equivalent to the checksum field holding eight ASCII spaces
CHECKSUM_SEED = 8 * ord(" ")

# Numeric field widths (bytes, including the terminating NUL)
MODE_FIELD_LEN = 8
ID_FIELD_LEN = 8
SIZE_FIELD_LEN = 12
MTIME_FIELD_LEN = 12

# Largest size an 11-digit octal field can carry (8 GiB - 1)
MAX_SIZE = 8 ** (SIZE_FIELD_LEN - 1) - 1

# Link indicators
TYPE_REGULAR = b"0"

# Ownership/permission placeholders; these fields are not user-configurable
DEFAULT_MODE = 0o644
DEFAULT_UID = 0
DEFAULT_GID = 0

# POSIX ends an archive with two zero blocks; readers accept one
DEFAULT_TERMINATOR_BLOCKS = 2

# Names are stored as bytes; surrogateescape lets undecodable bytes round-trip
NAME_ENCODING = "utf-8"
NAME_ERRORS = "surrogateescape"

# Reserved for the temp file used by in-place rewrites
STAGING_PREFIX = "tarlet-"
STAGING_SUFFIX = ".tmp"
