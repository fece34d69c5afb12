"""Tests for the file listing and single-file endpoints."""

from filehub.models import File, FileTag
from tests.conftest import TEST_BUCKET, make_file, make_folder, make_tag


class TestListFiles:

    def test_requires_auth(self, client):
        assert client.get("/api/files").status_code == 401

    def test_lists_root_files_with_pagination(self, client, db, user, auth_headers):
        make_file(db, user, "a.pdf")
        make_file(db, user, "b.png", mime_type="image/png")
        make_file(db, user, "nested.pdf", folder=make_folder(db, user))

        resp = client.get("/api/files", params={"sort": "name", "order": "asc"}, headers=auth_headers)

        assert resp.status_code == 200
        data = resp.json()
        assert [f["originalName"] for f in data["files"]] == ["a.pdf", "b.png"]
        assert data["pagination"] == {
            "page": 1, "limit": 20, "total": 2, "totalPages": 1, "hasNext": False, "hasPrev": False,
        }

    def test_derived_flags_and_summaries(self, client, db, user, auth_headers):
        folder = make_folder(db, user, "Pics")
        tag = make_tag(db, user, "holiday")
        make_file(db, user, "beach.png", folder=folder, mime_type="image/png", tags=(tag,))

        resp = client.get("/api/files", params={"folderId": folder.id}, headers=auth_headers)

        f = resp.json()["files"][0]
        assert f["isImage"] is True
        assert f["isVideo"] is False
        assert f["isDocument"] is False
        assert f["folder"]["name"] == "Pics"
        assert f["tags"] == [{"id": tag.id, "name": "holiday", "color": "#3B82F6"}]
        assert f["user"]["email"] == user.email
        assert f["thumbnailUrl"]

    def test_other_users_files_hidden(self, client, db, user, other_user, auth_headers):
        make_file(db, other_user, "theirs.pdf")
        resp = client.get("/api/files", headers=auth_headers)
        assert resp.json()["files"] == []

    def test_invalid_facets_are_400_with_fields(self, client, auth_headers):
        resp = client.get(
            "/api/files",
            params={"sort": "color", "limit": "500", "minSize": "-1"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        fields = {e["field"] for e in resp.json()["details"]["errors"]}
        assert fields == {"sort", "limit", "minSize"}

    def test_size_range_inverted_is_400(self, client, auth_headers):
        resp = client.get("/api/files", params={"minSize": "10", "maxSize": "5"}, headers=auth_headers)
        assert resp.status_code == 400
        assert "minSize" in resp.json()["message"]

    def test_total_matches_independent_count(self, client, db, user, auth_headers):
        tag = make_tag(db, user, "work")
        for i in range(7):
            make_file(db, user, f"doc{i}.pdf", size=i * 100, tags=(tag,) if i % 2 else ())

        resp = client.get(
            "/api/files",
            params={"tags": "work", "minSize": "200", "limit": "2"},
            headers=auth_headers,
        )

        expected = (
            db.query(File)
            .join(FileTag, FileTag.file_id == File.id)
            .filter(File.user_id == user.id, File.size >= 200, File.folder_id.is_(None))
            .count()
        )
        data = resp.json()
        assert data["pagination"]["total"] == expected == 2
        assert len(data["files"]) == 2


class TestGetFile:

    def test_get_includes_trashed(self, client, db, user, auth_headers):
        f = make_file(db, user, deleted=True)
        resp = client.get(f"/api/files/{f.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["file"]["deletedAt"] is not None

    def test_foreign_file_is_404(self, client, db, other_user, auth_headers):
        f = make_file(db, other_user)
        resp = client.get(f"/api/files/{f.id}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "FILE_NOT_FOUND"


class TestUpdateFile:

    def test_rename_and_describe(self, client, db, user, auth_headers):
        f = make_file(db, user, "a.txt", mime_type="text/plain")
        resp = client.put(
            f"/api/files/{f.id}",
            json={"originalName": "b.txt", "description": "hello"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        body = resp.json()["file"]
        assert body["originalName"] == "b.txt"
        assert body["description"] == "hello"

    def test_move_to_folder_and_back_to_root(self, client, db, user, auth_headers):
        folder = make_folder(db, user)
        f = make_file(db, user)

        resp = client.put(f"/api/files/{f.id}", json={"folderId": folder.id}, headers=auth_headers)
        assert resp.json()["file"]["folderId"] == folder.id

        resp = client.put(f"/api/files/{f.id}", json={"folderId": None}, headers=auth_headers)
        assert resp.json()["file"]["folderId"] is None

    def test_collision_is_409(self, client, db, user, auth_headers):
        make_file(db, user, "a.txt")
        b = make_file(db, user, "b.txt")
        resp = client.put(f"/api/files/{b.id}", json={"originalName": "a.txt"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_foreign_target_folder_is_404(self, client, db, user, other_user, auth_headers):
        f = make_file(db, user)
        foreign = make_folder(db, other_user)
        resp = client.put(f"/api/files/{f.id}", json={"folderId": foreign.id}, headers=auth_headers)
        assert resp.status_code == 404

    def test_invalid_name_is_400(self, client, db, user, auth_headers):
        f = make_file(db, user)
        resp = client.put(f"/api/files/{f.id}", json={"originalName": "a:b.pdf"}, headers=auth_headers)
        assert resp.status_code == 400
        resp = client.put(f"/api/files/{f.id}", json={"originalName": "run.exe"}, headers=auth_headers)
        assert resp.status_code == 400


class TestDeleteFile:

    def test_soft_delete(self, client, db, user, auth_headers):
        f = make_file(db, user)
        resp = client.delete(f"/api/files/{f.id}", headers=auth_headers)
        assert resp.status_code == 200
        db.refresh(f)
        assert f.deleted_at is not None

    def test_permanent_delete_removes_blob(self, client, db, user, auth_headers, s3_client):
        f = make_file(db, user)
        s3_client.put_object(Bucket=TEST_BUCKET, Key=f.blob_id, Body=b"x")
        file_id, blob_id = f.id, f.blob_id

        resp = client.delete(f"/api/files/{file_id}", params={"permanent": "true"}, headers=auth_headers)

        assert resp.status_code == 200
        db.expire_all()
        assert db.query(File).filter(File.id == file_id).first() is None
        assert s3_client.list_objects_v2(Bucket=TEST_BUCKET, Prefix=blob_id).get("KeyCount", 0) == 0

    def test_permanent_delete_keeps_shared_blob(self, client, db, user, auth_headers, s3_client):
        original = make_file(db, user, "a.pdf", blob_id="shared-key")
        copy = make_file(db, user, "Copy of a.pdf", blob_id="shared-key")
        s3_client.put_object(Bucket=TEST_BUCKET, Key="shared-key", Body=b"x")

        client.delete(f"/api/files/{copy.id}", params={"permanent": "true"}, headers=auth_headers)

        assert s3_client.list_objects_v2(Bucket=TEST_BUCKET, Prefix="shared-key")["KeyCount"] == 1
        db.refresh(original)
        assert original.deleted_at is None


class TestFileTags:

    def test_replace_and_clear(self, client, db, user, auth_headers):
        f = make_file(db, user)
        work = make_tag(db, user, "work")
        urgent = make_tag(db, user, "urgent", color="#EF4444")

        resp = client.post(f"/api/files/{f.id}/tags", json={"tagIds": [work.id, urgent.id]}, headers=auth_headers)
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()["tags"]] == ["urgent", "work"]

        resp = client.post(f"/api/files/{f.id}/tags", json={"tagIds": [work.id]}, headers=auth_headers)
        assert [t["name"] for t in resp.json()["tags"]] == ["work"]

        assert client.delete(f"/api/files/{f.id}/tags", headers=auth_headers).status_code == 200
        assert client.get(f"/api/files/{f.id}/tags", headers=auth_headers).json()["tags"] == []

    def test_foreign_tag_rejected_without_change(self, client, db, user, other_user, auth_headers):
        mine = make_tag(db, user, "mine")
        theirs = make_tag(db, other_user, "theirs")
        f = make_file(db, user, tags=(mine,))

        resp = client.post(f"/api/files/{f.id}/tags", json={"tagIds": [theirs.id]}, headers=auth_headers)

        assert resp.status_code == 404
        tags = client.get(f"/api/files/{f.id}/tags", headers=auth_headers).json()["tags"]
        assert [t["name"] for t in tags] == ["mine"]

    def test_more_than_ten_tags_is_400(self, client, db, user, auth_headers):
        f = make_file(db, user)
        resp = client.post(
            f"/api/files/{f.id}/tags", json={"tagIds": [str(i) for i in range(11)]}, headers=auth_headers
        )
        assert resp.status_code == 400
