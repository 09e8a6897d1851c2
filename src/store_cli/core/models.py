"""Value types shared by the addressing and dispatch layer."""

from dataclasses import dataclass
from enum import Enum
from typing import Union
from urllib.parse import SplitResult, urlsplit

from store_cli.errors import InvalidParameters


class _ParsableEnum(str, Enum):
    """String enum that turns unknown input into InvalidParameters."""

    @classmethod
    def parse(cls, value: Union[str, "_ParsableEnum"]):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameters(
                f"invalid parameters: unsupported {_LABELS[cls]} '{value}'"
            ) from None


class StoreType(_ParsableEnum):
    """Category of stored object."""

    CACHE = "cache"
    ARTIFACT = "artifact"
    LOG = "log"


class Scope(_ParsableEnum):
    """Dimension that partitions cache entries.

    An empty ``--scope`` maps to UNSCOPED, which is only meaningful for
    artifacts and logs.
    """

    EVENT = "event"
    JOB = "job"
    PIPELINE = "pipeline"
    BUILD = "build"
    UNSCOPED = ""


class Action(_ParsableEnum):
    """Operation requested on the command line."""

    GET = "get"
    SET = "set"
    REMOVE = "remove"


_LABELS = {StoreType: "store type", Scope: "scope", Action: "action"}


@dataclass(frozen=True)
class Address:
    """Fully-qualified location of an object in the remote store.

    Attributes:
        url: Full URL, base URL included
        key: Canonical key the address was built from
        store_type: Store type the address was built for
    """

    url: str
    key: str
    store_type: StoreType

    @property
    def parts(self) -> SplitResult:
        return urlsplit(self.url)

    def __str__(self) -> str:
        return self.url
