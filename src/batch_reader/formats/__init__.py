"""On-disk sample formats. Each one produces a RawPayload for the batch builder."""

from batch_reader.formats.base import BaseSampleFormat, RawPayload
from batch_reader.formats.cifar import CifarFormat
from batch_reader.formats.idx import IdxFormat

_FORMATS: dict[str, type[BaseSampleFormat]] = {
    IdxFormat.name: IdxFormat,
    CifarFormat.name: CifarFormat,
}


def get_format(name: str) -> BaseSampleFormat:
    """Return a default-configured format strategy by name ("idx" or "cifar10")."""
    try:
        return _FORMATS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown format '{name}', expected one of {sorted(_FORMATS)}"
        ) from None


__all__ = [
    "BaseSampleFormat",
    "CifarFormat",
    "IdxFormat",
    "RawPayload",
    "get_format",
]
