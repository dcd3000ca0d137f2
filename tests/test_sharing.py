from conftest import make_admin, upload

from drive_api.models.file_permission import FilePermission


def share(client, owner, file_id, email, role):
    return client.post(
        f"/files/share/{file_id}",
        json={"email": email, "role": role},
        headers=owner["headers"],
    )


def revoke(client, owner, file_id, user_id):
    return client.request(
        "DELETE",
        f"/files/revoke/{file_id}",
        json={"userId": user_id},
        headers=owner["headers"],
    )


def share_rows(client, file_id):
    db = client.app.state.session_factory()
    try:
        return [
            (row.user_id, row.permission)
            for row in db.query(FilePermission).filter(FilePermission.file_id == file_id)
        ]
    finally:
        db.close()


def test_view_grant_then_revoke(client, alice, bob):
    file = upload(client, alice)

    resp = share(client, alice, file["id"], "bob@example.com", "view")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Access granted to bob@example.com"

    seen = client.get(f"/files/showfile/{file['id']}", headers=bob["headers"])
    assert seen.status_code == 200
    assert seen.json()["access"] == "view"
    assert seen.json()["file"]["originalName"] == "notes.txt"

    assert revoke(client, alice, file["id"], bob["id"]).status_code == 200

    gone = client.get(f"/files/showfile/{file['id']}", headers=bob["headers"])
    assert gone.status_code == 403
    assert gone.json()["access"] == "none"
    assert "file" not in gone.json()


def test_edit_grantee_renames_but_viewer_cannot(client, alice, bob, carol):
    file = upload(client, alice)
    share(client, alice, file["id"], "carol@example.com", "edit")
    share(client, alice, file["id"], "bob@example.com", "view")

    renamed = client.patch(
        f"/files/rename/{file['id']}",
        json={"newName": "by-carol.txt"},
        headers=carol["headers"],
    )
    assert renamed.status_code == 200
    assert renamed.json()["file"]["originalName"] == "by-carol.txt"

    denied = client.patch(
        f"/files/rename/{file['id']}",
        json={"newName": "by-bob.txt"},
        headers=bob["headers"],
    )
    assert denied.status_code == 403

    current = client.get(f"/files/showfile/{file['id']}", headers=alice["headers"])
    assert current.json()["file"]["originalName"] == "by-carol.txt"


def test_regrant_updates_in_place(client, alice, bob):
    file = upload(client, alice)

    share(client, alice, file["id"], "bob@example.com", "view")
    share(client, alice, file["id"], "BOB@example.com", "edit")

    assert share_rows(client, file["id"]) == [(bob["id"], "edit")]

    detail = client.get(f"/files/showfile/{file['id']}", headers=alice["headers"]).json()["file"]
    assert [(e["user"]["id"], e["permission"]) for e in detail["sharedWith"]] == [(bob["id"], "edit")]


def test_share_unknown_email(client, alice):
    file = upload(client, alice)
    resp = share(client, alice, file["id"], "ghost@example.com", "view")
    assert resp.status_code == 404
    assert resp.json()["message"] == "User with this email not found"


def test_only_owner_can_share(client, alice, bob, carol):
    file = upload(client, alice)
    share(client, alice, file["id"], "bob@example.com", "edit")

    resp = share(client, bob, file["id"], "carol@example.com", "view")
    assert resp.status_code == 403
    assert share_rows(client, file["id"]) == [(bob["id"], "edit")]


def test_admin_cannot_manage_sharing(client, alice, bob, carol):
    file = upload(client, alice)
    make_admin(client, bob["id"])

    assert share(client, bob, file["id"], "carol@example.com", "view").status_code == 403
    assert revoke(client, bob, file["id"], carol["id"]).status_code == 403


def test_share_with_owner_is_rejected(client, alice):
    file = upload(client, alice)
    resp = share(client, alice, file["id"], "alice@example.com", "edit")
    assert resp.status_code == 400


def test_share_rejects_unknown_role(client, alice, bob):
    file = upload(client, alice)
    resp = share(client, alice, file["id"], "bob@example.com", "owner")
    assert resp.status_code == 400
    assert share_rows(client, file["id"]) == []


def test_revoke_is_noop_when_absent(client, alice, bob, carol):
    file = upload(client, alice)
    share(client, alice, file["id"], "carol@example.com", "view")

    resp = revoke(client, alice, file["id"], bob["id"])
    assert resp.status_code == 200
    assert share_rows(client, file["id"]) == [(carol["id"], "view")]


def test_edit_grantee_can_delete(client, alice, bob):
    file = upload(client, alice)
    share(client, alice, file["id"], "bob@example.com", "edit")

    resp = client.delete(f"/files/delete/{file['id']}", headers=bob["headers"])
    assert resp.status_code == 200
    assert share_rows(client, file["id"]) == []


def test_view_grantee_cannot_delete_or_replace(client, alice, bob):
    file = upload(client, alice)
    share(client, alice, file["id"], "bob@example.com", "view")

    assert client.delete(f"/files/delete/{file['id']}", headers=bob["headers"]).status_code == 403
    replace = client.put(
        f"/files/update-content/{file['id']}",
        files={"file": ("x.txt", b"x", "text/plain")},
        headers=bob["headers"],
    )
    assert replace.status_code == 403


def test_admin_with_view_grant_sees_view(client, alice, bob):
    file = upload(client, alice)
    make_admin(client, bob["id"])
    share(client, alice, file["id"], "bob@example.com", "view")

    resp = client.get(f"/files/showfile/{file['id']}", headers=bob["headers"])
    assert resp.json()["access"] == "view"


def test_shared_with_me(client, alice, bob):
    first = upload(client, alice, name="one.txt")
    second = upload(client, alice, name="two.txt")
    upload(client, alice, name="private.txt")
    share(client, alice, first["id"], "bob@example.com", "view")
    share(client, alice, second["id"], "bob@example.com", "edit")

    resp = client.get("/files/shared-with-me", headers=bob["headers"])
    assert resp.status_code == 200
    listed = {f["originalName"]: f["permission"] for f in resp.json()["files"]}
    assert listed == {"one.txt": "view", "two.txt": "edit"}


def test_access_request_lifecycle(client, alice, bob):
    file = upload(client, alice)

    first = client.post(f"/files/request-access/{file['id']}", headers=bob["headers"])
    again = client.post(f"/files/request-access/{file['id']}", headers=bob["headers"])
    assert first.status_code == again.status_code == 200

    detail = client.get(f"/files/showfile/{file['id']}", headers=alice["headers"]).json()["file"]
    assert [r["user"]["id"] for r in detail["accessRequests"]] == [bob["id"]]

    share(client, alice, file["id"], "bob@example.com", "view")
    detail = client.get(f"/files/showfile/{file['id']}", headers=alice["headers"]).json()["file"]
    assert detail["accessRequests"] == []

    # grantees do not see pending requests, and cannot request what they have
    bob_view = client.get(f"/files/showfile/{file['id']}", headers=bob["headers"]).json()["file"]
    assert bob_view["accessRequests"] == []
    assert client.post(f"/files/request-access/{file['id']}", headers=bob["headers"]).status_code == 400
