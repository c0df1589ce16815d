"""Tests for OrderService — numbering, lifecycle and the structure view."""

from datetime import datetime, timezone

import pytest

from orderdesk.exceptions import OrderNotFoundError, OrderStateError
from orderdesk.models import FileItem, FileStatus, Folder, Order, OrderStatus
from orderdesk.schemas.order import OrderUpdate
from orderdesk.services import FolderService, OrderService
from orderdesk.services.order_service import DEFAULT_FOLDERS
from orderdesk.storage import LocalStorage
from tests.conftest import make_files, make_order, make_user


class TestOrderNumbers:

    def test_first_order_of_month_is_001(self, db):
        when = datetime(2025, 4, 3, tzinfo=timezone.utc)
        assert OrderService(db).generate_order_number(when) == "ORD-2025-04-001"

    def test_numbers_increase_within_month(self, db):
        first = make_order(db, name="A")
        second = make_order(db, name="B")

        prefix = first.order_number[:-3]
        assert second.order_number == f"{prefix}{int(first.order_number[-3:]) + 1:03d}"

    def test_sequence_restarts_for_new_month(self, db):
        make_order(db)
        when = datetime(2001, 1, 15, tzinfo=timezone.utc)
        assert OrderService(db).generate_order_number(when) == "ORD-2001-01-001"


class TestCreateOrder:

    def test_creates_default_folders(self, db):
        user = make_user(db)
        order = make_order(db, user_id=user.id, customer_name="Acme")

        assert order.status == OrderStatus.PENDING.value
        assert order.created_by == user.id
        assert [f.name for f in order.folders] == list(DEFAULT_FOLDERS)

    def test_list_orders_filters_and_counts(self, db):
        a = make_order(db, name="Spring catalogue")
        make_order(db, name="Autumn lookbook")
        make_files(db, a, 3)

        orders, counts, total = OrderService(db).list_orders(search="spring")

        assert total == 1
        assert [o.id for o in orders] == [a.id]
        assert counts[a.id].pending == 3

    def test_list_orders_pages_newest_first(self, db):
        ids = [make_order(db, name=f"Order {i}").id for i in range(3)]

        orders, _, total = OrderService(db).list_orders(limit=2, offset=0)

        assert total == 3
        assert [o.id for o in orders] == [ids[2], ids[1]]

    def test_update_keeps_name_when_blank(self, db):
        order = make_order(db, name="Original")

        updated = OrderService(db).update_order(order.id, OrderUpdate(name="  ", customer_name="Acme"))

        assert updated.name == "Original"
        assert updated.customer_name == "Acme"


class TestLifecycle:

    def test_mark_completed_requires_all_files_done(self, db):
        order = make_order(db)
        make_files(db, order, 1)
        make_files(db, order, 1, status=FileStatus.COMPLETED.value)

        with pytest.raises(OrderStateError):
            OrderService(db).mark_completed(order.id)

    def test_mark_completed_rejects_empty_order(self, db):
        order = make_order(db)

        with pytest.raises(OrderStateError):
            OrderService(db).mark_completed(order.id)

    def test_mark_completed_sets_timestamp(self, db):
        order = make_order(db)
        make_files(db, order, 2, status=FileStatus.COMPLETED.value)

        done = OrderService(db).mark_completed(order.id)

        assert done.status == OrderStatus.COMPLETED.value
        assert done.completed_at is not None

    def test_approve_only_from_completed(self, db):
        order = make_order(db)
        service = OrderService(db)

        with pytest.raises(OrderStateError) as exc_info:
            service.approve(order.id)
        assert exc_info.value.status_code == 409

        make_files(db, order, 1, status=FileStatus.COMPLETED.value)
        service.mark_completed(order.id)
        approved = service.approve(order.id)

        assert approved.status == OrderStatus.APPROVED.value
        assert approved.approved_at is not None

    def test_approved_order_cannot_be_completed_again(self, db):
        order = make_order(db)
        make_files(db, order, 1, status=FileStatus.COMPLETED.value)
        service = OrderService(db)
        service.mark_completed(order.id)
        service.approve(order.id)

        with pytest.raises(OrderStateError):
            service.mark_completed(order.id)


class TestDeleteAndStructure:

    def test_delete_removes_children_and_blobs(self, db, tmp_path):
        storage = LocalStorage(str(tmp_path))
        order = make_order(db)
        make_files(db, order, 2, folder_id=order.folders[0].id)
        blob = storage.build_path(order.id, "a.jpg")
        storage.save(blob, b"x")
        order_id = order.id

        OrderService(db, storage=storage).delete_order(order_id)

        assert db.query(Order).filter(Order.id == order_id).count() == 0
        assert db.query(Folder).filter(Folder.order_id == order_id).count() == 0
        assert db.query(FileItem).filter(FileItem.order_id == order_id).count() == 0
        assert not storage.exists(blob)

    def test_delete_unknown_order(self, db):
        with pytest.raises(OrderNotFoundError):
            OrderService(db).delete_order(999)

    def test_structure_groups_files(self, db):
        order = make_order(db)
        folder = order.folders[0]
        sub = FolderService(db).create_subfolder(folder.id, "Batch A")
        make_files(db, order, 1)
        make_files(db, order, 2, folder_id=folder.id)
        make_files(db, order, 1, folder_id=folder.id, subfolder_id=sub.id)

        structure = OrderService(db).get_structure(order.id)

        assert len(structure["unfiled"]) == 1
        first = structure["folders"][0]
        assert len(first.files) == 2
        assert len(first.subfolders[0].files) == 1
