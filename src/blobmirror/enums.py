from enum import Enum


class ErrorCause(Enum):
    TRANSPORT = "transport"
    DECODE = "decode"
    PATH = "path"
    FILESYSTEM = "filesystem"


class SyncOutcome(Enum):
    FETCHED = "fetched"
    SKIPPED = "skipped"
