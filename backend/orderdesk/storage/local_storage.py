"""Filesystem blob store rooted at ``settings.upload_dir``.

Paths handed out and accepted by this module are relative to the root,
e.g. ``orders/12/3/7/invoice-scan-1714032000123.png``. Rows in
``file_items.path`` store exactly that string.
"""

import logging
import re
import shutil
import time
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from ..core.config import settings
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase ASCII slug, ``"file"`` when nothing usable remains."""
    slug = _SLUG_RE.sub("-", name.lower()).strip("-")
    return slug[:80] or "file"


class LocalStorage:
    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.upload_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def order_dir(order_id: int) -> str:
        return f"orders/{order_id}"

    def build_path(
        self,
        order_id: int,
        original_name: str,
        folder_id: Optional[int] = None,
        subfolder_id: Optional[int] = None,
    ) -> str:
        """Relative path for a new upload: ``orders/{order}/{folder}[/{subfolder}]/{slug}-{ts}.{ext}``."""
        parts = [self.order_dir(order_id)]
        if folder_id is not None:
            parts.append(str(folder_id))
            if subfolder_id is not None:
                parts.append(str(subfolder_id))

        pure = PurePosixPath(original_name.replace("\\", "/")).name
        stem, dot, ext = pure.rpartition(".")
        if not dot:
            stem, ext = pure, ""
        # Millisecond timestamp plus a short random tail so two uploads of the
        # same name in one request never collide.
        stamp = f"{int(time.time() * 1000)}{uuid.uuid4().hex[:6]}"
        filename = f"{slugify(stem)}-{stamp}"
        if ext:
            filename += f".{_SLUG_RE.sub('', ext.lower())}"
        parts.append(filename)
        return "/".join(parts)

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for *relative_path*. Refuses paths escaping the root."""
        full = (self.root / relative_path).resolve()
        if full != self.root and self.root not in full.parents:
            raise ValidationError("Invalid storage path", field="path")
        return full

    def save(self, relative_path: str, content: bytes) -> int:
        """Write *content* and return the number of bytes stored."""
        full = self.resolve(relative_path)
        full.parent.mkdir(parents=True, exist_ok=True)
        with open(full, "wb") as f:
            f.write(content)
        logger.debug("Stored blob %s (%d bytes)", relative_path, len(content))
        return len(content)

    def read(self, relative_path: str) -> bytes:
        with open(self.resolve(relative_path), "rb") as f:
            return f.read()

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    def delete(self, relative_path: str) -> bool:
        """Remove one blob. Returns False when it was already gone."""
        full = self.resolve(relative_path)
        if full.is_file():
            full.unlink()
            return True
        return False

    def delete_order(self, order_id: int) -> None:
        """Remove every blob stored for an order."""
        full = self.resolve(self.order_dir(order_id))
        if full.is_dir():
            shutil.rmtree(full)
            logger.info("Removed blob directory for order %d", order_id)


_storage: Optional[LocalStorage] = None


def get_storage() -> LocalStorage:
    """Process-wide storage instance, created on first use."""
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
