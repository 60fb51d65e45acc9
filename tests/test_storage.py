import os

from conftest import auth
from souqote.config import settings


def upload(client, token, bucket, filename="drawing.pdf", content=b"%PDF-1.4 data"):
    return client.post(
        f"/storage/{bucket}",
        files={"file": (filename, content, "application/octet-stream")},
        headers=auth(token),
    )


def test_upload_is_stored_and_served(client, buyer):
    token, user = buyer

    response = upload(client, token, "rfq-attachments")

    assert response.status_code == 201
    body = response.json()
    assert body["bucket"] == "rfq-attachments"
    assert body["path"].startswith(f"rfq-attachments/{user['id']}/")
    assert body["path"].endswith(".pdf")
    assert body["size"] == len(b"%PDF-1.4 data")
    assert body["public_url"] == f"/files/{body['path']}"
    assert os.path.exists(os.path.join(settings.UPLOAD_DIR, body["path"]))


def test_unknown_bucket(client, buyer):
    token, _ = buyer
    assert upload(client, token, "secrets").status_code == 404


def test_disallowed_extension(client, buyer):
    token, _ = buyer
    assert upload(client, token, "avatars", filename="script.exe").status_code == 400


def test_empty_file(client, buyer):
    token, _ = buyer
    assert upload(client, token, "rfq-attachments", content=b"").status_code == 400


def test_oversized_file(client, buyer, monkeypatch):
    token, _ = buyer
    monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 0)
    assert upload(client, token, "rfq-attachments").status_code == 400


def test_requires_login(client):
    response = client.post("/storage/rfq-attachments", files={"file": ("a.pdf", b"x", "application/pdf")})
    assert response.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_size_limit_boundary(client, buyer, monkeypatch):
    token, _ = buyer
    monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 1)
    limit = 1024 * 1024

    at_limit = upload(client, token, "rfq-attachments", content=b"x" * limit)
    assert at_limit.status_code == 201
    assert at_limit.json()["size"] == limit

    assert upload(client, token, "rfq-attachments", content=b"x" * (limit + 1)).status_code == 400
