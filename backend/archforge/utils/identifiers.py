"""ID generation and timestamp utilities."""

import itertools
import re
import time
import uuid
from datetime import datetime, timezone

_node_counter = itertools.count(1)


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def epoch_millis() -> int:
    return int(time.time() * 1000)


def generate_architecture_id() -> str:
    """Generate an architecture ID (``arch_<epoch-ms>_<hex>``)."""
    return f"arch_{epoch_millis()}_{uuid.uuid4().hex[:6]}"


def generate_node_id(name: str = "") -> str:
    """Generate a node ID from a display name, a process counter and a random suffix."""
    base = slugify(name) or "node"
    return f"{base}-{next(_node_counter)}-{uuid.uuid4().hex[:4]}"


def generate_edge_id(source: str, target: str) -> str:
    return f"e-{source}-{target}-{uuid.uuid4().hex[:4]}"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
