"""Hierarchical file-status aggregation for orders, folders and subfolders.

Counts come from grouped ``COUNT(*) ... GROUP BY status`` queries; no file
rows are loaded. Parent counts are built by adding child counts, so a
folder always equals its direct files plus the sum of its subfolders and an
order equals its unfiled files plus the sum of its folders.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping

from sqlalchemy.orm import Session

from ..models import FileItem, FileStatus, Folder, Order
from ..repositories import FileItemRepository, FolderRepository, OrderRepository, SubfolderRepository

logger = logging.getLogger(__name__)


def percentage(part: int, total: int) -> int:
    """Whole-number percentage, halves rounded up. 0 for an empty total."""
    if total <= 0:
        return 0
    return (part * 200 + total) // (total * 2)


@dataclass(frozen=True)
class StatusCounts:
    """File counts per status for one node of an order's tree."""

    pending: int = 0
    claimed: int = 0
    processing: int = 0
    completed: int = 0

    @classmethod
    def from_mapping(cls, counts: Mapping[str, int]) -> "StatusCounts":
        return cls(
            pending=counts.get(FileStatus.PENDING.value, 0),
            claimed=counts.get(FileStatus.CLAIMED.value, 0),
            processing=counts.get(FileStatus.PROCESSING.value, 0),
            completed=counts.get(FileStatus.COMPLETED.value, 0),
        )

    def __add__(self, other: "StatusCounts") -> "StatusCounts":
        if not isinstance(other, StatusCounts):
            return NotImplemented
        return StatusCounts(
            pending=self.pending + other.pending,
            claimed=self.claimed + other.claimed,
            processing=self.processing + other.processing,
            completed=self.completed + other.completed,
        )

    @property
    def total(self) -> int:
        return self.pending + self.claimed + self.processing + self.completed

    @property
    def in_progress(self) -> int:
        return self.claimed + self.processing

    @property
    def progress_percentage(self) -> int:
        return percentage(self.completed, self.total)

    @property
    def is_completed(self) -> bool:
        # An empty node is never complete.
        return self.total > 0 and self.completed == self.total

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "claimed": self.claimed,
            "processing": self.processing,
            "in_progress": self.in_progress,
            "completed": self.completed,
            "progress_percentage": self.progress_percentage,
            "is_completed": self.is_completed,
        }


def _sum(counts: List[StatusCounts]) -> StatusCounts:
    total = StatusCounts()
    for c in counts:
        total = total + c
    return total


class StatsService:
    """Read-only status aggregation. Never writes."""

    def __init__(self, db: Session):
        self.db = db
        self.file_repo = FileItemRepository(db)
        self.order_repo = OrderRepository(db)
        self.folder_repo = FolderRepository(db)
        self.subfolder_repo = SubfolderRepository(db)

    def subfolder_stats(self, subfolder_id: int) -> StatusCounts:
        self.subfolder_repo.get_by_id(subfolder_id)
        return StatusCounts.from_mapping(
            self.file_repo.count_by_status(FileItem.subfolder_id == subfolder_id)
        )

    def folder_stats(self, folder_id: int) -> StatusCounts:
        """Direct files of the folder plus every subfolder's files."""
        return self.folder_breakdown(folder_id)["counts"]

    def folder_breakdown(self, folder_id: int) -> dict:
        """Folder counts with direct and per-subfolder parts, shaped like ``FolderStatsResponse``."""
        folder = self.folder_repo.get_by_id(folder_id)
        direct_by_folder = self.file_repo.count_by_status_grouped(
            FileItem.folder_id,
            FileItem.folder_id == folder.id,
            FileItem.subfolder_id.is_(None),
        )
        by_subfolder = self.file_repo.count_by_status_grouped(
            FileItem.subfolder_id,
            FileItem.subfolder_id.in_([s.id for s in folder.subfolders]),
        ) if folder.subfolders else {}
        return self._assemble_folder(folder, direct_by_folder, by_subfolder)

    def order_stats(self, order_id: int) -> StatusCounts:
        """Unfiled files of the order plus every folder's recursive counts."""
        return self.order_breakdown(order_id)["counts"]

    def order_breakdown(self, order_id: int) -> dict:
        """Order counts with the per-folder and per-subfolder tree.

        Shaped like ``OrderStatsResponse``; counts are StatusCounts objects.
        """
        order: Order = self.order_repo.get_by_id(order_id)

        unfiled = StatusCounts.from_mapping(self.file_repo.count_by_status(
            FileItem.order_id == order_id, FileItem.folder_id.is_(None)
        ))
        direct_by_folder = self.file_repo.count_by_status_grouped(
            FileItem.folder_id,
            FileItem.order_id == order_id,
            FileItem.folder_id.isnot(None),
            FileItem.subfolder_id.is_(None),
        )
        by_subfolder = self.file_repo.count_by_status_grouped(
            FileItem.subfolder_id,
            FileItem.order_id == order_id,
            FileItem.subfolder_id.isnot(None),
        )

        folders = [
            self._assemble_folder(folder, direct_by_folder, by_subfolder)
            for folder in order.folders
        ]
        counts = unfiled + _sum([f["counts"] for f in folders])
        return {
            "order_id": order.id,
            "status": order.status,
            "counts": counts,
            "unfiled": unfiled,
            "folders": folders,
        }

    @staticmethod
    def _assemble_folder(
        folder: Folder,
        direct_by_folder: Dict[int, Dict[str, int]],
        by_subfolder: Dict[int, Dict[str, int]],
    ) -> dict:
        direct = StatusCounts.from_mapping(direct_by_folder.get(folder.id, {}))
        subfolders = [
            {
                "id": sub.id,
                "name": sub.name,
                "counts": StatusCounts.from_mapping(by_subfolder.get(sub.id, {})),
            }
            for sub in folder.subfolders
        ]
        return {
            "id": folder.id,
            "name": folder.name,
            "direct": direct,
            "counts": direct + _sum([s["counts"] for s in subfolders]),
            "subfolders": subfolders,
        }


def serialize_counts(node):
    """Replace every StatusCounts in a breakdown with its dict form."""
    if isinstance(node, StatusCounts):
        return node.to_dict()
    if isinstance(node, dict):
        return {key: serialize_counts(value) for key, value in node.items()}
    if isinstance(node, list):
        return [serialize_counts(value) for value in node]
    return node
