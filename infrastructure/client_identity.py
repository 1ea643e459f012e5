from __future__ import annotations

import uuid
from pathlib import Path


def load_or_create_client_id(path: str) -> str:
    """
    Return the client identifier stored at `path`, creating it on first use.

    The identifier is a random UUID generated once per installation. It is
    the only key for chip balances and history, so it is kept out of logs
    and passed explicitly wherever it is needed.
    """

    file = Path(path)
    if file.exists():
        existing = file.read_text(encoding="utf-8").strip()
        if existing:
            return existing

    client_id = str(uuid.uuid4())
    file.parent.mkdir(parents=True, exist_ok=True)
    file.write_text(client_id + "\n", encoding="utf-8")
    return client_id
