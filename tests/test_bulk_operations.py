"""Tests for the bulk operation executor.

Service-level tests drive BulkOperationExecutor directly; the API class at
the bottom checks the HTTP surface (status codes and camelCase results).
"""

from unittest.mock import MagicMock

import pytest

from filehub.exceptions import FolderNotFoundError, ForbiddenError, ValidationError
from filehub.models import File
from filehub.schemas.bulk import BulkOperation, BulkOperationRequest
from filehub.services.bulk_operations import BulkOperationExecutor
from tests.conftest import TEST_BUCKET, make_file, make_folder


def _request(**kwargs) -> BulkOperationRequest:
    return BulkOperationRequest.model_validate(kwargs)


def _put_blob(s3_client, key: str) -> None:
    s3_client.put_object(Bucket=TEST_BUCKET, Key=key, Body=b"data")


def _blob_exists(s3_client, key: str) -> bool:
    resp = s3_client.list_objects_v2(Bucket=TEST_BUCKET, Prefix=key)
    return any(obj["Key"] == key for obj in resp.get("Contents", []))


class TestWholeRequestChecks:

    def test_move_without_target_field_rejected(self, db, user):
        f = make_file(db, user)
        with pytest.raises(ValidationError) as exc:
            BulkOperationExecutor(db).execute(user.id, _request(operation="move", fileIds=[f.id]))
        assert exc.value.details["field"] == "targetFolderId"

    def test_move_with_explicit_null_targets_root(self, db, user):
        folder = make_folder(db, user)
        f = make_file(db, user, folder=folder)

        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="move", fileIds=[f.id], targetFolderId=None)
        )

        assert results[0].success is True
        db.refresh(f)
        assert f.folder_id is None

    def test_rename_without_pattern_rejected(self, db, user):
        f = make_file(db, user)
        with pytest.raises(ValidationError):
            BulkOperationExecutor(db).execute(user.id, _request(operation="rename", fileIds=[f.id]))
        with pytest.raises(ValidationError):
            BulkOperationExecutor(db).execute(
                user.id, _request(operation="rename", fileIds=[f.id], renamePattern="  ")
            )

    def test_foreign_id_rejects_whole_batch(self, db, user, other_user):
        mine = make_file(db, user, "mine.pdf")
        theirs = make_file(db, other_user, "theirs.pdf")

        with pytest.raises(ForbiddenError):
            BulkOperationExecutor(db).execute(
                user.id, _request(operation="delete", fileIds=[mine.id, theirs.id])
            )

        db.refresh(mine)
        assert mine.deleted_at is None

    def test_unknown_id_rejects_whole_batch(self, db, user):
        mine = make_file(db, user)
        with pytest.raises(ForbiddenError):
            BulkOperationExecutor(db).execute(user.id, _request(operation="delete", fileIds=[mine.id, "nope"]))
        db.refresh(mine)
        assert mine.deleted_at is None

    def test_soft_deleted_id_rejects_whole_batch(self, db, user):
        active = make_file(db, user, "active.pdf")
        trashed = make_file(db, user, "trashed.pdf", deleted=True)

        with pytest.raises(ForbiddenError):
            BulkOperationExecutor(db).execute(
                user.id, _request(operation="delete", fileIds=[active.id, trashed.id])
            )

        db.refresh(active)
        assert active.deleted_at is None

    def test_missing_target_folder_is_404(self, db, user, other_user):
        f = make_file(db, user)
        foreign = make_folder(db, other_user)
        with pytest.raises(FolderNotFoundError):
            BulkOperationExecutor(db).execute(
                user.id, _request(operation="move", fileIds=[f.id], targetFolderId=foreign.id)
            )

    def test_duplicate_ids_processed_once(self, db, user):
        f = make_file(db, user)
        results = BulkOperationExecutor(db).execute(user.id, _request(operation="delete", fileIds=[f.id, f.id]))
        assert len(results) == 1


class TestDelete:

    def test_soft_delete_sets_timestamp(self, db, user):
        f = make_file(db, user)
        results = BulkOperationExecutor(db).execute(user.id, _request(operation="delete", fileIds=[f.id]))
        assert results[0].success is True
        db.refresh(f)
        assert f.deleted_at is not None

    def test_permanent_delete_removes_row_and_blob(self, db, user, blob_store, s3_client):
        f = make_file(db, user)
        _put_blob(s3_client, f.blob_id)
        file_id, blob_id = f.id, f.blob_id

        results = BulkOperationExecutor(db, blob_store=blob_store).execute(
            user.id, _request(operation="delete", fileIds=[file_id], permanent=True)
        )

        assert results[0].success is True
        assert db.query(File).filter(File.id == file_id).first() is None
        assert not _blob_exists(s3_client, blob_id)

    def test_blob_failure_does_not_block_row_delete(self, db, user):
        f = make_file(db, user)
        file_id = f.id
        store = MagicMock(is_configured=True)
        store.delete.side_effect = RuntimeError("store down")

        results = BulkOperationExecutor(db, blob_store=store).execute(
            user.id, _request(operation="delete", fileIds=[file_id], permanent=True)
        )

        assert results[0].success is True
        assert db.query(File).filter(File.id == file_id).first() is None
        store.delete.assert_called_once()

    def test_copy_then_permanent_delete_keeps_original(self, db, user, blob_store, s3_client):
        original = make_file(db, user, "a.txt", mime_type="text/plain")
        _put_blob(s3_client, original.blob_id)
        executor = BulkOperationExecutor(db, blob_store=blob_store)

        copy_result = executor.execute(user.id, _request(operation="copy", fileIds=[original.id]))[0]
        executor.execute(user.id, _request(operation="delete", fileIds=[copy_result.copy_id], permanent=True))

        db.refresh(original)
        assert original.deleted_at is None
        assert db.query(File).filter(File.id == copy_result.copy_id).first() is None
        assert _blob_exists(s3_client, original.blob_id)


class TestMove:

    def test_moves_into_folder(self, db, user):
        folder = make_folder(db, user)
        f = make_file(db, user)
        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="move", fileIds=[f.id], targetFolderId=folder.id)
        )
        assert results[0].success is True
        db.refresh(f)
        assert f.folder_id == folder.id

    def test_collision_fails_item_and_continues(self, db, user):
        folder = make_folder(db, user)
        make_file(db, user, "a.txt", folder=folder)
        clash = make_file(db, user, "a.txt")
        fine = make_file(db, user, "b.txt")

        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="move", fileIds=[clash.id, fine.id], targetFolderId=folder.id)
        )

        assert [r.success for r in results] == [False, True]
        assert "already exists" in results[0].error
        db.refresh(clash)
        db.refresh(fine)
        assert clash.folder_id is None
        assert fine.folder_id == folder.id

    def test_trashed_namesake_is_not_a_collision(self, db, user):
        folder = make_folder(db, user)
        make_file(db, user, "a.txt", folder=folder, deleted=True)
        f = make_file(db, user, "a.txt")
        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="move", fileIds=[f.id], targetFolderId=folder.id)
        )
        assert results[0].success is True


class TestCopy:

    def test_copy_names_increment(self, db, user):
        f = make_file(db, user, "a.txt", mime_type="text/plain")
        executor = BulkOperationExecutor(db)

        first = executor.execute(user.id, _request(operation="copy", fileIds=[f.id]))[0]
        second = executor.execute(user.id, _request(operation="copy", fileIds=[f.id]))[0]
        third = executor.execute(user.id, _request(operation="copy", fileIds=[f.id]))[0]

        assert [first.new_name, second.new_name, third.new_name] == [
            "Copy of a.txt", "Copy (2) of a.txt", "Copy (3) of a.txt",
        ]

    def test_copy_shares_blob_and_lands_in_target(self, db, user):
        folder = make_folder(db, user)
        f = make_file(db, user, "a.txt", mime_type="text/plain", description="notes")

        result = BulkOperationExecutor(db).execute(
            user.id, _request(operation="copy", fileIds=[f.id], targetFolderId=folder.id)
        )[0]

        dup = db.query(File).filter(File.id == result.copy_id).one()
        assert dup.blob_id == f.blob_id
        assert dup.folder_id == folder.id
        assert dup.description == "notes"
        assert dup.original_name == "Copy of a.txt"

    def test_copy_defaults_to_source_folder(self, db, user):
        folder = make_folder(db, user)
        f = make_file(db, user, "a.txt", folder=folder)
        result = BulkOperationExecutor(db).execute(user.id, _request(operation="copy", fileIds=[f.id]))[0]
        dup = db.query(File).filter(File.id == result.copy_id).one()
        assert dup.folder_id == folder.id


class TestRename:

    def test_pattern_with_index_and_extension(self, db, user):
        report = make_file(db, user, "report.pdf")
        notes = make_file(db, user, "notes.txt", mime_type="text/plain")

        results = BulkOperationExecutor(db).execute(
            user.id,
            _request(operation="rename", fileIds=[report.id, notes.id], renamePattern="{{name}}_{{index}}"),
        )

        assert [r.new_name for r in results] == ["report_1.pdf", "notes_2.txt"]
        db.refresh(report)
        assert report.original_name == "report_1.pdf"
        assert report.filename == "report_1.pdf"

    def test_collision_leaves_both_files_untouched(self, db, user):
        a = make_file(db, user, "a.txt", mime_type="text/plain")
        b = make_file(db, user, "b.txt", mime_type="text/plain")

        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="rename", fileIds=[b.id], renamePattern="a.txt")
        )

        assert results[0].success is False
        assert results[0].error == 'Name "a.txt" already exists'
        db.refresh(a)
        db.refresh(b)
        assert (a.original_name, b.original_name) == ("a.txt", "b.txt")

    def test_invalid_characters_fail_per_item(self, db, user):
        a = make_file(db, user, "a.txt", mime_type="text/plain")
        results = BulkOperationExecutor(db).execute(
            user.id, _request(operation="rename", fileIds=[a.id], renamePattern="bad/{{index}}")
        )
        assert results[0].success is False
        assert "invalid characters" in results[0].error

    def test_unexpected_error_is_captured(self, db, user, monkeypatch):
        a = make_file(db, user, "a.txt", mime_type="text/plain")
        b = make_file(db, user, "b.txt", mime_type="text/plain")
        executor = BulkOperationExecutor(db)
        real_rename = executor._handlers[BulkOperation.RENAME]

        def flaky(state, file, index):
            if file.id == a.id:
                raise RuntimeError("boom")
            return real_rename(state, file, index)

        monkeypatch.setitem(executor._handlers, BulkOperation.RENAME, flaky)
        results = executor.execute(
            user.id, _request(operation="rename", fileIds=[a.id, b.id], renamePattern="x-{{index}}")
        )

        assert results[0].success is False
        assert results[0].error == "Rename failed"
        assert results[1].success is True
        assert results[1].new_name == "x-2.txt"


class TestBulkApi:

    def test_results_are_camel_case_without_nulls(self, client, db, user, auth_headers):
        f = make_file(db, user, "a.txt", mime_type="text/plain")
        resp = client.post(
            "/api/files/bulk-operations",
            json={"operation": "copy", "fileIds": [f.id]},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        result = resp.json()["results"][0]
        assert result["success"] is True
        assert result["newName"] == "Copy of a.txt"
        assert "copyId" in result
        assert "error" not in result

    def test_gate_failure_is_403(self, client, db, user, other_user, auth_headers):
        theirs = make_file(db, other_user)
        resp = client.post(
            "/api/files/bulk-operations",
            json={"operation": "delete", "fileIds": [theirs.id]},
            headers=auth_headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    def test_move_without_target_is_400(self, client, db, user, auth_headers):
        f = make_file(db, user)
        resp = client.post(
            "/api/files/bulk-operations",
            json={"operation": "move", "fileIds": [f.id]},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "targetFolderId"

    def test_unknown_operation_is_400(self, client, db, user, auth_headers):
        f = make_file(db, user)
        resp = client.post(
            "/api/files/bulk-operations",
            json={"operation": "explode", "fileIds": [f.id]},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_empty_ids_is_400(self, client, auth_headers):
        resp = client.post(
            "/api/files/bulk-operations",
            json={"operation": "delete", "fileIds": []},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_requires_auth(self, client):
        resp = client.post("/api/files/bulk-operations", json={"operation": "delete", "fileIds": ["x"]})
        assert resp.status_code == 401
