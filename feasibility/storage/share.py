"""Portable share tokens for a single snapshot.

A token is base64 (URL-safe) of ``{"version", "engine", "payload",
"checksum"}``, where the checksum is FNV-1a over the other three fields
serialized as key-sorted compact JSON.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict

from ..errors import SnapshotImportError
from .snapshots import ScenarioSnapshot

SHARE_SCHEMA_VERSION = 1
ENGINE_VERSION = "feasibility-1"
SHARE_URL_MAX_LEN = 8000

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def fnv1a_hex(text: str) -> str:
    """32-bit FNV-1a hash of the UTF-8 bytes, as 8 hex digits."""
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return f"{h:08x}"


def stable_dumps(data: Any) -> str:
    """Deterministic JSON: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass
class PortableSnapshot:
    version: int
    engine: str
    payload: ScenarioSnapshot
    checksum: str


def _pack(snapshot: ScenarioSnapshot) -> Dict[str, Any]:
    body = {
        "version": SHARE_SCHEMA_VERSION,
        "engine": ENGINE_VERSION,
        "payload": snapshot.to_dict(),
    }
    body["checksum"] = fnv1a_hex(stable_dumps(body))
    return body


def encode_snapshot(snapshot: ScenarioSnapshot) -> str:
    """Encode a snapshot as a share token."""
    raw = json.dumps(_pack(snapshot), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_snapshot(token: str) -> PortableSnapshot:
    """Decode and verify a share token.

    Raises:
        SnapshotImportError: If the token is malformed or the checksum
            does not match.
    """
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        parsed = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise SnapshotImportError("Malformed share token") from e

    if not isinstance(parsed, dict) or not isinstance(parsed.get("payload"), dict):
        raise SnapshotImportError("Malformed share token")

    body = {k: v for k, v in parsed.items() if k != "checksum"}
    if parsed.get("checksum") != fnv1a_hex(stable_dumps(body)):
        raise SnapshotImportError("Checksum mismatch")

    payload = parsed["payload"]
    if not payload.get("id") or not payload.get("name"):
        raise SnapshotImportError("Share token payload is missing id or name")

    return PortableSnapshot(
        version=int(parsed.get("version", 0)),
        engine=str(parsed.get("engine", "")),
        payload=ScenarioSnapshot.from_dict(payload),
        checksum=parsed["checksum"],
    )


def share_fragment(snapshot: ScenarioSnapshot) -> tuple[str, bool]:
    """URL fragment ("s=<token>") and whether it exceeds the share length limit."""
    fragment = f"s={encode_snapshot(snapshot)}"
    return fragment, len(fragment) > SHARE_URL_MAX_LEN
