"""Tests for file upload, download, zip, status and assignment endpoints."""

import io
import zipfile

from orderdesk.core.config import settings
from orderdesk.models import FileItem, Order, OrderStatus
from tests.conftest import make_files, make_order, make_user


def _upload(client, order_id, headers, names=("a.jpg",), **form):
    files = [("files", (name, f"content of {name}".encode(), "image/jpeg")) for name in names]
    data = {key: str(value) for key, value in form.items()}
    return client.post(f"/api/orders/{order_id}/files", files=files, data=data, headers=headers)


class TestUpload:

    def test_upload_creates_pending_files(self, client, db, auth_headers):
        order = make_order(db)

        resp = _upload(client, order.id, auth_headers, names=("one.jpg", "two.png"))

        assert resp.status_code == 201
        body = resp.json()
        assert [f["original_name"] for f in body] == ["one.jpg", "two.png"]
        assert all(f["status"] == "pending" and f["assigned_to"] is None for f in body)
        assert body[0]["path"].startswith(f"orders/{order.id}/")
        assert body[0]["file_size"] == len(b"content of one.jpg")

    def test_upload_into_subfolder_sets_folder(self, client, db, auth_headers):
        order = make_order(db)
        folder_id = order.folders[0].id
        sub_id = client.post(
            f"/api/folders/{folder_id}/subfolders", json={"name": "S"}, headers=auth_headers
        ).json()["id"]

        resp = _upload(client, order.id, auth_headers, subfolder_id=sub_id)

        item = resp.json()[0]
        assert item["subfolder_id"] == sub_id
        assert item["folder_id"] == folder_id

    def test_upload_to_foreign_folder_returns_404(self, client, db, auth_headers):
        order = make_order(db, name="A")
        other = make_order(db, name="B")

        resp = _upload(client, order.id, auth_headers, folder_id=other.folders[0].id)

        assert resp.status_code == 404
        assert db.query(FileItem).count() == 0

    def test_oversized_upload_is_rejected(self, client, db, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_size", 4)
        order = make_order(db)

        resp = _upload(client, order.id, auth_headers)

        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "files"

    def test_worker_cannot_upload(self, client, db, worker_headers):
        order = make_order(db)
        assert _upload(client, order.id, worker_headers).status_code == 403

    def test_upload_to_approved_order_returns_409(self, client, db, auth_headers):
        order = make_order(db)
        db.get(Order, order.id).status = OrderStatus.APPROVED.value
        db.commit()

        resp = _upload(client, order.id, auth_headers)

        assert resp.status_code == 409
        assert resp.json()["error"] == "INVALID_ORDER_STATE"


class TestDownload:

    def test_download_returns_content(self, client, db, auth_headers):
        order = make_order(db)
        file_id = _upload(client, order.id, auth_headers, names=("photo.jpg",)).json()[0]["id"]

        resp = client.get(f"/api/files/{file_id}/download", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.content == b"content of photo.jpg"

    def test_missing_blob_returns_404(self, client, db, auth_headers):
        order = make_order(db)
        file_id = make_files(db, order, 1)[0].id
        assert client.get(f"/api/files/{file_id}/download", headers=auth_headers).status_code == 404

    def test_zip_lays_out_folders(self, client, db, auth_headers):
        order = make_order(db)
        folder = order.folders[0]
        ids = [f["id"] for f in _upload(client, order.id, auth_headers, names=("a.jpg", "a.jpg"), folder_id=folder.id).json()]
        ids += [f["id"] for f in _upload(client, order.id, auth_headers, names=("b.jpg",)).json()]

        resp = client.post(f"/api/orders/{order.id}/files/zip", json={"file_ids": ids}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/zip"
        names = sorted(zipfile.ZipFile(io.BytesIO(resp.content)).namelist())
        assert names == ["Original Images/a (1).jpg", "Original Images/a.jpg", "b.jpg"]

    def test_zip_with_no_matching_files_returns_400(self, client, db, auth_headers):
        order = make_order(db)
        resp = client.post(f"/api/orders/{order.id}/files/zip", json={"file_ids": [999]}, headers=auth_headers)
        assert resp.status_code == 400

    def test_replace_content_marks_processed(self, client, db, auth_headers):
        order = make_order(db)
        uploaded = _upload(client, order.id, auth_headers).json()[0]

        resp = client.put(
            f"/api/files/{uploaded['id']}/content",
            files={"file": ("a.jpg", b"edited", "image/jpeg")},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["is_processed"] is True
        assert resp.json()["path"] != uploaded["path"]
        download = client.get(f"/api/files/{uploaded['id']}/download", headers=auth_headers)
        assert download.content == b"edited"

    def test_delete_file(self, client, db, auth_headers):
        order = make_order(db)
        file_id = _upload(client, order.id, auth_headers).json()[0]["id"]

        assert client.delete(f"/api/files/{file_id}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/files/{file_id}", headers=auth_headers).status_code == 404


class TestStatusAndAssignment:

    def test_taking_a_file_assigns_the_caller(self, client, db, worker, worker_headers):
        order = make_order(db)
        file_id = make_files(db, order, 1)[0].id

        resp = client.put(f"/api/files/{file_id}/status", json={"status": "processing"}, headers=worker_headers)

        assert resp.status_code == 200
        assert resp.json()["status"] == "processing"
        assert resp.json()["assigned_to"] == worker.id

    def test_back_to_pending_clears_assignee(self, client, db, worker, worker_headers):
        order = make_order(db)
        file_id = make_files(db, order, 1, status="claimed", assigned_to=worker.id)[0].id

        resp = client.put(f"/api/files/{file_id}/status", json={"status": "pending"}, headers=worker_headers)

        assert resp.json()["assigned_to"] is None

    def test_claimed_file_status_change_returns_409(self, client, db, worker, worker_headers):
        order = make_order(db)
        make_files(db, order, 1)
        claimed = client.post(f"/api/orders/{order.id}/claims", json={}, headers=worker_headers).json()
        file_id = claimed["claim"]["file_ids"][0]

        resp = client.put(f"/api/files/{file_id}/status", json={"status": "pending"}, headers=worker_headers)

        assert resp.status_code == 409
        assert resp.json()["error"] == "CONFLICT"

    def test_invalid_status_returns_422(self, client, db, worker_headers):
        order = make_order(db)
        file_id = make_files(db, order, 1)[0].id
        resp = client.put(f"/api/files/{file_id}/status", json={"status": "archived"}, headers=worker_headers)
        assert resp.status_code == 422

    def test_complete_file(self, client, db, worker_headers):
        order = make_order(db)
        file_id = make_files(db, order, 1)[0].id
        resp = client.post(f"/api/files/{file_id}/complete", headers=worker_headers)
        assert resp.json()["status"] == "completed"
        assert resp.json()["is_processed"] is True

    def test_bulk_status_ignores_other_orders(self, client, db, auth_headers):
        order = make_order(db, name="A")
        other = make_order(db, name="B")
        mine = make_files(db, order, 2)
        foreign = make_files(db, other, 1)

        resp = client.post(
            f"/api/orders/{order.id}/files/status",
            json={"file_ids": [f.id for f in mine + foreign], "status": "completed"},
            headers=auth_headers,
        )

        assert resp.json()["updated"] == 2
        db.expire_all()
        assert db.get(FileItem, foreign[0].id).status == "pending"

    def test_assign_and_unassign(self, client, db, auth_headers):
        order = make_order(db)
        target = make_user(db, name="Target")
        files = make_files(db, order, 2)
        ids = [f.id for f in files]

        assigned = client.post(
            f"/api/orders/{order.id}/files/assign",
            json={"file_ids": ids, "user_id": target.id},
            headers=auth_headers,
        )
        assert assigned.json()["updated"] == 2
        db.expire_all()
        assert {(f.status, f.assigned_to) for f in db.query(FileItem).all()} == {("claimed", target.id)}

        client.post(f"/api/orders/{order.id}/files/unassign", json={"file_ids": ids}, headers=auth_headers)
        db.expire_all()
        assert {(f.status, f.assigned_to) for f in db.query(FileItem).all()} == {("pending", None)}

    def test_assigned_files_are_not_claimable(self, client, db, auth_headers, worker_headers):
        order = make_order(db)
        target = make_user(db, name="Target")
        files = make_files(db, order, 1)
        client.post(
            f"/api/orders/{order.id}/files/assign",
            json={"file_ids": [files[0].id], "user_id": target.id},
            headers=auth_headers,
        )

        resp = client.post(f"/api/orders/{order.id}/claims", json={}, headers=worker_headers)

        assert resp.json()["claimed"] is False

    def test_list_files_filters_by_status(self, client, db, auth_headers):
        order = make_order(db)
        make_files(db, order, 2)
        make_files(db, order, 1, status="completed")

        resp = client.get(f"/api/orders/{order.id}/files?status=completed", headers=auth_headers)

        assert len(resp.json()) == 1
