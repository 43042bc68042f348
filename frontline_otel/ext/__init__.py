from enum import IntEnum
from enum import unique


@unique
class SpanKind(IntEnum):
    UNSPECIFIED = 0
    INTERNAL = 1
    SERVER = 2
    CLIENT = 3
    PRODUCER = 4
    CONSUMER = 5


@unique
class StatusCode(IntEnum):
    UNSET = 0
    OK = 1
    ERROR = 2
