"""Wire format for window records.

A record is stored as a JSON object mapping the timestamp (as a string key,
JSON has no integer keys) to its count: ``{"1710528362": 1}``. Entry order is
not significant; decoding re-sorts.

Keys must be canonical decimals ("10", never "010" or " 10 ") so two distinct
keys can never name the same second, and counts must be JSON integers.
"""
from typing import Annotated

from pydantic import Field, TypeAdapter, ValidationError

from kvlimit.errors import DecodeError
from kvlimit.stamp import MAX_COUNT, Stamp

_Timestamp = Annotated[str, Field(pattern=r"^(0|[1-9][0-9]{0,19})$")]
_Count = Annotated[int, Field(ge=0, le=MAX_COUNT, strict=True)]
_wire = TypeAdapter(dict[_Timestamp, _Count])


def decode_stamp(payload: bytes) -> Stamp:
    try:
        entries = _wire.validate_json(payload)
    except ValidationError as exc:
        raise DecodeError(f"invalid window record: {exc.error_count()} error(s)") from exc

    stamp = {}
    for key, count in entries.items():
        timestamp = int(key)
        if timestamp > MAX_COUNT:
            raise DecodeError(f"invalid window record: timestamp {key} out of range")
        stamp[timestamp] = count
    return Stamp(stamp)


def encode_stamp(stamp: Stamp) -> bytes:
    return _wire.dump_json({str(timestamp): count for timestamp, count in stamp.items()})
