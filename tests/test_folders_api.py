"""Tests for the folder endpoints."""

from filehub.models import File, FileTag, Folder
from tests.conftest import TEST_BUCKET, make_file, make_folder, make_tag


class TestListAndCreate:

    def test_create_root_folder(self, client, auth_headers):
        resp = client.post("/api/folders", json={"name": "  Projects ", "description": "work"}, headers=auth_headers)
        assert resp.status_code == 201
        folder = resp.json()["folder"]
        assert folder["name"] == "Projects"
        assert folder["parentId"] is None
        assert folder["fileCount"] == 0

    def test_create_child_and_list_levels(self, client, db, user, auth_headers):
        parent = make_folder(db, user, "Parent")
        resp = client.post("/api/folders", json={"name": "Child", "parentId": parent.id}, headers=auth_headers)
        assert resp.status_code == 201

        roots = client.get("/api/folders", headers=auth_headers).json()["folders"]
        assert [f["name"] for f in roots] == ["Parent"]
        assert roots[0]["subfolderCount"] == 1

        children = client.get("/api/folders", params={"parentId": parent.id}, headers=auth_headers).json()
        assert [f["name"] for f in children["folders"]] == ["Child"]

        everything = client.get("/api/folders", params={"all": "true"}, headers=auth_headers).json()
        assert {f["name"] for f in everything["folders"]} == {"Parent", "Child"}

    def test_file_count_excludes_trashed(self, client, db, user, auth_headers):
        folder = make_folder(db, user)
        make_file(db, user, "a.pdf", folder=folder)
        make_file(db, user, "b.pdf", folder=folder, deleted=True)

        folders = client.get("/api/folders", headers=auth_headers).json()["folders"]
        assert folders[0]["fileCount"] == 1

    def test_sibling_name_collision_is_409(self, client, db, user, auth_headers):
        make_folder(db, user, "Docs")
        resp = client.post("/api/folders", json={"name": "Docs"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_same_name_under_other_parent_allowed(self, client, db, user, auth_headers):
        parent = make_folder(db, user, "Parent")
        make_folder(db, user, "Docs")
        resp = client.post("/api/folders", json={"name": "Docs", "parentId": parent.id}, headers=auth_headers)
        assert resp.status_code == 201

    def test_invalid_name_is_400(self, client, auth_headers):
        resp = client.post("/api/folders", json={"name": "a/b"}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "name"

    def test_blank_name_is_400(self, client, auth_headers):
        assert client.post("/api/folders", json={"name": "   "}, headers=auth_headers).status_code == 400

    def test_foreign_parent_is_404(self, client, db, other_user, auth_headers):
        foreign = make_folder(db, other_user)
        resp = client.post("/api/folders", json={"name": "X", "parentId": foreign.id}, headers=auth_headers)
        assert resp.status_code == 404

    def test_other_users_folders_hidden(self, client, db, other_user, auth_headers):
        make_folder(db, other_user, "Theirs")
        assert client.get("/api/folders", headers=auth_headers).json()["folders"] == []


class TestGetFolder:

    def test_detail_includes_parent_children_and_active_files(self, client, db, user, auth_headers):
        parent = make_folder(db, user, "Parent")
        folder = make_folder(db, user, "Folder", parent=parent)
        make_folder(db, user, "Child", parent=folder)
        make_file(db, user, "a.pdf", folder=folder)
        make_file(db, user, "gone.pdf", folder=folder, deleted=True)

        resp = client.get(f"/api/folders/{folder.id}", headers=auth_headers)

        assert resp.status_code == 200
        detail = resp.json()["folder"]
        assert detail["parent"]["name"] == "Parent"
        assert [c["name"] for c in detail["children"]] == ["Child"]
        assert [f["originalName"] for f in detail["files"]] == ["a.pdf"]
        assert detail["fileCount"] == 1
        assert detail["subfolderCount"] == 1

    def test_foreign_folder_is_404(self, client, db, other_user, auth_headers):
        foreign = make_folder(db, other_user)
        assert client.get(f"/api/folders/{foreign.id}", headers=auth_headers).status_code == 404


class TestUpdateFolder:

    def test_rename(self, client, db, user, auth_headers):
        folder = make_folder(db, user, "Old")
        resp = client.put(f"/api/folders/{folder.id}", json={"name": "New"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["folder"]["name"] == "New"

    def test_rename_collision_is_409(self, client, db, user, auth_headers):
        make_folder(db, user, "Taken")
        folder = make_folder(db, user, "Mine")
        resp = client.put(f"/api/folders/{folder.id}", json={"name": "Taken"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_move_under_descendant_is_400(self, client, db, user, auth_headers):
        top = make_folder(db, user, "Top")
        middle = make_folder(db, user, "Middle", parent=top)
        bottom = make_folder(db, user, "Bottom", parent=middle)

        resp = client.put(f"/api/folders/{top.id}", json={"parentId": bottom.id}, headers=auth_headers)

        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "parentId"

    def test_move_under_itself_is_400(self, client, db, user, auth_headers):
        folder = make_folder(db, user)
        resp = client.put(f"/api/folders/{folder.id}", json={"parentId": folder.id}, headers=auth_headers)
        assert resp.status_code == 400

    def test_move_to_root_with_explicit_null(self, client, db, user, auth_headers):
        parent = make_folder(db, user, "Parent")
        child = make_folder(db, user, "Child", parent=parent)
        resp = client.put(f"/api/folders/{child.id}", json={"parentId": None}, headers=auth_headers)
        assert resp.json()["folder"]["parentId"] is None

    def test_omitted_parent_keeps_location(self, client, db, user, auth_headers):
        parent = make_folder(db, user, "Parent")
        child = make_folder(db, user, "Child", parent=parent)
        resp = client.put(f"/api/folders/{child.id}", json={"description": "d"}, headers=auth_headers)
        assert resp.json()["folder"]["parentId"] == parent.id

    def test_move_into_sibling_with_same_name_is_409(self, client, db, user, auth_headers):
        target = make_folder(db, user, "Target")
        make_folder(db, user, "Docs", parent=target)
        moving = make_folder(db, user, "Docs")
        resp = client.put(f"/api/folders/{moving.id}", json={"parentId": target.id}, headers=auth_headers)
        assert resp.status_code == 409


class TestDeleteFolder:

    def test_empty_folder_deleted(self, client, db, user, auth_headers):
        folder = make_folder(db, user)
        resp = client.delete(f"/api/folders/{folder.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert db.query(Folder).count() == 0

    def test_non_empty_without_force_reports_counts(self, client, db, user, auth_headers):
        folder = make_folder(db, user)
        make_folder(db, user, "Sub", parent=folder)
        make_file(db, user, "a.pdf", folder=folder)
        make_file(db, user, "b.pdf", folder=folder, deleted=True)

        resp = client.delete(f"/api/folders/{folder.id}", headers=auth_headers)

        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "FOLDER_NOT_EMPTY"
        assert body["details"]["files"] == 2
        assert body["details"]["subfolders"] == 1

    def test_force_removes_whole_subtree(self, client, db, user, auth_headers, s3_client):
        tag = make_tag(db, user)
        keep = make_folder(db, user, "Keep")
        kept_file = make_file(db, user, "keep.pdf", folder=keep)
        folder = make_folder(db, user, "Doomed")
        sub = make_folder(db, user, "Sub", parent=folder)
        deeper = make_folder(db, user, "Deeper", parent=sub)
        make_file(db, user, "a.pdf", folder=folder, tags=(tag,))
        make_file(db, user, "b.pdf", folder=deeper, deleted=True)
        s3_client.put_object(Bucket=TEST_BUCKET, Key="k", Body=b"x")
        make_file(db, user, "c.pdf", folder=sub, blob_id="k")

        resp = client.delete(f"/api/folders/{folder.id}", params={"force": "true"}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "deletedFiles": 3, "deletedFolders": 3}
        db.expire_all()
        assert {f.name for f in db.query(Folder).all()} == {"Keep"}
        assert [f.id for f in db.query(File).all()] == [kept_file.id]
        assert db.query(FileTag).count() == 0
        assert s3_client.list_objects_v2(Bucket=TEST_BUCKET, Prefix="k").get("KeyCount", 0) == 0

    def test_foreign_folder_is_404(self, client, db, other_user, auth_headers):
        foreign = make_folder(db, other_user)
        resp = client.delete(f"/api/folders/{foreign.id}", params={"force": "true"}, headers=auth_headers)
        assert resp.status_code == 404
        assert db.query(Folder).count() == 1
