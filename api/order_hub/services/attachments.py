# order_hub/services/attachments.py
"""
Attachment Link Store - binary attachments linked to any owning record.

Handles:
- Owner references (entity type + numeric id), parsed from raw path input
- Storing uploaded bytes below the attachments root, one folder per owner
- Metadata records (filename, mime type, size, sha256)
- Listing and reading back by owner
"""
from __future__ import annotations
import hashlib
import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePath
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.database import unit_of_work
from order_hub.db_models import AttachmentEntityType, AttachmentEntry, AttachmentType
from order_hub.errors import (
    AttachmentNotFound, AttachmentOwnerNotFound, MalformedAttachmentOwner,
    StorageFailure, ValidationFailure,
)
from order_hub.paths import owner_attachments_dir
from order_hub.repositories import AttachmentRepository, SqlAttachmentRepository

log = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class EntityRef:
    """Owning record of an attachment."""
    entity_type: AttachmentEntityType
    id: int

    @classmethod
    def parse(cls, entity_type: Union[str, AttachmentEntityType], raw_id: Union[str, int]) -> "EntityRef":
        """
        Build a reference from untrusted input.

        Raises:
            MalformedAttachmentOwner: unknown entity type or non-positive/non-numeric id
        """
        try:
            etype = AttachmentEntityType(entity_type)
        except ValueError:
            raise MalformedAttachmentOwner(
                f"Unknown attachment owner type '{entity_type}'",
                {"entityType": str(entity_type)},
            )
        try:
            entity_id = int(str(raw_id).strip())
        except ValueError:
            entity_id = 0
        if entity_id <= 0:
            raise MalformedAttachmentOwner(
                f"Invalid {etype.value} id '{raw_id}'",
                {"entityType": etype.value, "id": str(raw_id)},
            )
        return cls(entity_type=etype, id=entity_id)

    def __str__(self) -> str:
        return f"{self.entity_type.value}:{self.id}"


def guess_mime_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or DEFAULT_MIME_TYPE


def _clean_filename(filename: Optional[str]) -> str:
    # browsers may send full client paths
    name = PurePath((filename or "").replace("\\", "/")).name.strip()
    if not name or name in (".", ".."):
        raise ValidationFailure("Attachment filename is required")
    return name


class AttachmentLinkStore:
    def __init__(self, db: AsyncSession, root: Path, attachments: Optional[AttachmentRepository] = None):
        self.db = db
        self.root = Path(root)
        self.attachments = attachments or SqlAttachmentRepository(db)

    def owner_dir(self, ref: EntityRef) -> Path:
        return owner_attachments_dir(self.root, ref.entity_type.value, ref.id)

    async def list_for(self, ref: EntityRef) -> List[AttachmentEntry]:
        return await self.attachments.list_by_owner(ref.entity_type, ref.id)

    async def get(self, ref: EntityRef, attachment_id: int) -> AttachmentEntry:
        entry = await self.attachments.get(ref.entity_type, ref.id, attachment_id)
        if entry is None:
            raise AttachmentNotFound(
                f"Attachment {attachment_id} not found for {ref}",
                {"owner": str(ref), "id": attachment_id},
            )
        return entry

    async def create(self, ref: EntityRef, filename: Optional[str], content: bytes) -> AttachmentEntry:
        """
        Store `content` for `ref` and record its metadata.

        The metadata row is only written once the bytes are on disk; if the
        row cannot be written or committed the file is removed again.
        """
        name = _clean_filename(filename)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        target = self.owner_dir(ref) / f"{ts}_{name}"

        try:
            async with unit_of_work(self.db):
                if not await self.attachments.owner_exists(ref.entity_type, ref.id):
                    raise AttachmentOwnerNotFound(f"Attachment owner {ref} not found", {"owner": str(ref)})

                try:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(content)
                except OSError as e:
                    log.error("cannot store attachment %s for %s: %s", name, ref, e)
                    raise StorageFailure(f"Cannot store attachment '{name}'", {"owner": str(ref)})

                entry = await self.attachments.add(AttachmentEntry(
                    entity_type=ref.entity_type,
                    entity_id=ref.id,
                    type=AttachmentType.data,
                    filename=name,
                    mime_type=guess_mime_type(name),
                    storage_path=target.relative_to(self.root).as_posix(),
                    size_bytes=len(content),
                    sha256=hashlib.sha256(content).hexdigest(),
                ))
        except Exception:
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                log.warning("cannot remove orphaned attachment file %s: %s", target, e)
            raise

        log.info("attachment %s (%d bytes) stored for %s as id=%s", name, len(content), ref, entry.id)
        return entry

    def read_content(self, entry: AttachmentEntry) -> bytes:
        if not entry.storage_path:
            raise AttachmentNotFound(f"Attachment {entry.id} has no stored content", {"id": entry.id})
        path = (self.root / entry.storage_path).resolve()
        try:
            path.relative_to(self.root.resolve())
        except ValueError:
            raise StorageFailure(f"Attachment {entry.id} points outside the attachment store", {"id": entry.id})
        try:
            return path.read_bytes()
        except OSError as e:
            log.error("cannot read attachment %s: %s", entry.id, e)
            raise StorageFailure(f"Cannot read attachment {entry.id}", {"id": entry.id})
