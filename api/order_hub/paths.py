from __future__ import annotations
from pathlib import Path

def owner_attachments_dir(root: Path, entity_type: str, entity_id: int) -> Path:
    return Path(root) / entity_type / str(entity_id)
