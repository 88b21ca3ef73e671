"""
FIT file reader: turns a .fit file into a DecodedMessageSet.

fitparse does the binary decoding; this module only collects the 'record'
messages and the first 'session' message and hands their raw values to the
boundary models in ridedata.ingest.decoded. No unit conversion happens here
(fitparse already applies FIT scale/offset, so altitude is in meters and
speed in m/s; positions stay in semicircles for the normalizer).
"""
import io
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import fitparse

from ridedata.ingest.decoded import DecodedMessageSet


class FitDecodeError(Exception):
    """Raised when a FIT file cannot be read or decoded."""


def _message_values(messages) -> List[Dict[str, Any]]:
    return [m.get_values() for m in messages]


def read_fit(source: Union[Path, bytes]) -> DecodedMessageSet:
    """
    Decode a FIT file from a path or raw bytes.

    Args:
        source: Path to a .fit file, or the file's bytes (e.g. an HTTP upload)

    Returns:
        DecodedMessageSet with all record messages and the first session
        message (None when the file has no session)

    Raises:
        FitDecodeError: if the path doesn't exist or the data isn't valid FIT
    """
    if isinstance(source, Path):
        if not source.exists():
            raise FitDecodeError(f"FIT file not found: {source}")
        fileish: Any = str(source)
    else:
        if not source:
            raise FitDecodeError("Empty upload: no FIT data received")
        fileish = io.BytesIO(source)

    try:
        fit = fitparse.FitFile(fileish)
        records = _message_values(fit.get_messages("record"))
        sessions = _message_values(fit.get_messages("session"))
    except Exception as exc:
        raise FitDecodeError(f"Failed to decode FIT data: {exc}") from exc

    session: Optional[Dict[str, Any]] = sessions[0] if sessions else None
    return DecodedMessageSet.model_validate({
        "records": records,
        "session_summary": session,
    })
