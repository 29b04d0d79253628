"""
API tests for the bulk upload routes.

Run through FastAPI's TestClient with the mocked database.
"""

import pytest

from tests.factories import UploadFileFactory, UploadRowFactory

BASE = "/api/billboards/bulk-upload"
OWNER = "owner-123"


def upload(client, rows, filename="inventario.csv", **data):
    content = UploadFileFactory.csv(rows)
    return client.post(
        f"{BASE}/sessions",
        files={"file": (filename, content, "text/csv")},
        data={"owner_id": OWNER, **data},
    )


def rows_for(*identifiers, **overrides):
    return [UploadRowFactory.create(**{"Frame_ID": fid, **overrides}) for fid in identifiers]


@pytest.fixture
def client(test_client_with_mock_db):
    return test_client_with_mock_db


class TestTemplateEndpoint:
    """GET /template"""

    def test_csv_template(self, client):
        response = client.get(f"{BASE}/template")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]

    def test_xlsx_template(self, client):
        response = client.get(f"{BASE}/template", params={"format": "xlsx"})

        assert response.status_code == 200
        assert response.content.startswith(b"PK")

    def test_invalid_format(self, client):
        response = client.get(f"{BASE}/template", params={"format": "pdf"})

        assert response.status_code == 422


class TestSessionEndpoints:
    """Session lifecycle over HTTP."""

    def test_create_session(self, client):
        response = upload(client, rows_for("FR-1", "FR-1", "FR-2"))

        assert response.status_code == 201
        body = response.json()
        assert body["state"] == "mapped"
        assert body["row_count"] == 3
        assert body["missing_required"] == []
        assert body["mapping"]["frame_id"] == "Frame_ID"
        assert len(body["fields"]) > 9

    def test_get_session(self, client):
        session_id = upload(client, rows_for("FR-1")).json()["session_id"]

        response = client.get(f"{BASE}/sessions/{session_id}")

        assert response.status_code == 200
        assert response.json()["session_id"] == session_id

    def test_unknown_session(self, client):
        response = client.get(f"{BASE}/sessions/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "UPLOAD_SESSION_NOT_FOUND"

    def test_unreadable_file(self, client):
        response = client.post(
            f"{BASE}/sessions",
            files={"file": ("x.csv", b"\x81\x82\x00", "text/csv")},
            data={"owner_id": OWNER},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "FILE_UNREADABLE"

    def test_mapping_update_missing_required(self, client):
        session_id = upload(client, rows_for("FR-1")).json()["session_id"]

        response = client.put(
            f"{BASE}/sessions/{session_id}/mapping",
            json={"mapping": {"public_price": None}},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "MISSING_REQUIRED_COLUMN"
        assert error["details"]["missing_fields"] == ["public_price"]
        # The edit is kept
        assert client.get(f"{BASE}/sessions/{session_id}").json()["state"] == "idle"

    def test_mapping_update_unknown_header(self, client):
        session_id = upload(client, rows_for("FR-1")).json()["session_id"]

        response = client.put(
            f"{BASE}/sessions/{session_id}/mapping",
            json={"mapping": {"public_price": "Costo"}},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNKNOWN_MAPPING_HEADER"

    def test_cancel(self, client):
        session_id = upload(client, rows_for("FR-1")).json()["session_id"]

        assert client.delete(f"{BASE}/sessions/{session_id}").status_code == 204
        assert client.get(f"{BASE}/sessions/{session_id}").status_code == 404


class TestPreviewAndCommit:
    """Preview and commit over HTTP."""

    def test_preview(self, client):
        session_id = upload(client, rows_for("FR-1", "FR-2") + rows_for("FR-3", Latitud="abc")).json()["session_id"]

        response = client.post(f"{BASE}/sessions/{session_id}/preview")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "previewed"
        assert body["valid_groups"] == 2
        assert len(body["records"]) == 2
        assert body["issues"][0]["field"] == "latitude"
        assert body["commit_blocked"] is False

    def test_commit_before_preview_conflicts(self, client):
        session_id = upload(client, rows_for("FR-1")).json()["session_id"]

        response = client.post(f"{BASE}/sessions/{session_id}/commit")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_SESSION_STATE"

    def test_commit_success_discards_session(self, client, mock_supabase):
        session_id = upload(client, rows_for("FR-1", "FR-2")).json()["session_id"]
        client.post(f"{BASE}/sessions/{session_id}/preview")

        response = client.post(f"{BASE}/sessions/{session_id}/commit")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "done"
        assert body["succeeded"] == 2
        assert len(mock_supabase.inserted["billboards"]) == 2
        assert client.get(f"{BASE}/sessions/{session_id}").status_code == 404

    def test_partial_failure_keeps_error_report(self, client, mock_supabase):
        mock_supabase.fail_inserts("billboards", 2)
        session_id = upload(client, rows_for("FR-1", "FR-2", "FR-3")).json()["session_id"]
        client.post(f"{BASE}/sessions/{session_id}/preview")

        response = client.post(f"{BASE}/sessions/{session_id}/commit")

        body = response.json()
        assert body["state"] == "partially_failed"
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert body["failures"][0]["identifier"] == "FR-2"

        report = client.get(f"{BASE}/sessions/{session_id}/errors")
        assert report.status_code == 200
        assert "FR-2" in report.content.decode("utf-8-sig")

    def test_duplicate_blocks_commit(self, client, mock_supabase):
        mock_supabase.set_table_data("billboards", [
            {"id": "1", "nombre": "FR-1 - Digital", "owner_id": OWNER},
        ])
        session_id = upload(client, rows_for("FR-1", "FR-2")).json()["session_id"]

        preview = client.post(f"{BASE}/sessions/{session_id}/preview").json()
        response = client.post(f"{BASE}/sessions/{session_id}/commit")

        assert preview["duplicate_identifiers"] == ["FR-1"]
        assert preview["commit_blocked"] is True
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_IDENTIFIER"
        assert "billboards" not in mock_supabase.inserted

    def test_error_report_xlsx(self, client):
        session_id = upload(client, rows_for("FR-1", Latitud="abc")).json()["session_id"]
        client.post(f"{BASE}/sessions/{session_id}/preview")

        response = client.get(f"{BASE}/sessions/{session_id}/errors", params={"format": "xlsx"})

        assert response.status_code == 200
        assert response.content.startswith(b"PK")
