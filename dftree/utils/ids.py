from __future__ import annotations

import base64
import uuid


def new_base64_uuid() -> str:
    """Return a 22-character URL-safe Base64-encoded UUID4 without padding."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes)[:-2].decode("ascii")


def new_element_id(kind: str) -> str:
    """Return a fresh element identifier of the form ``"<kind>-<base64_uuid>"``.

    Args:
        kind: Element family, e.g. ``"event"``, ``"gate"`` or ``"conn"``.

    Returns:
        Identifier that is unique across the process with overwhelming
        probability, so events and gates never share an id.
    """
    return f"{kind}-{new_base64_uuid()}"
