"""API tests for the chart service, through FastAPI's TestClient."""

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.pipeline import ChartError, ChartResult, check_data, run_chart, run_chart_file, summarize
from funnel_chart.data import BLANK, Step

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FUNNEL_WIDTH", "FUNNEL_HEIGHT", "FUNNEL_GRADIENT_BASE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def client():
    return TestClient(app)


class TestPipeline:

    def test_check_data(self, sample_json, sample_data):
        assert check_data(sample_json) == sample_data

    def test_check_data_reports_reason(self):
        with pytest.raises(ChartError, match="step count at index 1 is negative"):
            check_data('["blank", {"name": "a", "count": -1}]')

    def test_summarize(self, sample_data):
        assert summarize(sample_data) == {"steps": 3, "blanks": 1, "top_count": 100}
        assert summarize([BLANK])["top_count"] == 0

    def test_run_chart(self, sample_json):
        result = run_chart(sample_json, width=600, height=300, gradient_base=0, fmt="svg")

        assert b"<svg" in result.content
        assert result.media_type == "image/svg+xml"
        assert result.filename == "funnel.svg"
        assert result.data[0] == Step("did a thing", 100)

    def test_run_chart_rejects_pdf(self, sample_json):
        with pytest.raises(ChartError, match="Unsupported format"):
            run_chart(sample_json, width=600, height=300, gradient_base=0, fmt="pdf")

    def test_run_chart_file_rejects_extension(self, tmp_path):
        path = tmp_path / "funnel.txt"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ChartError, match="Unsupported file type"):
            run_chart_file(path, width=600, height=300, gradient_base=0)

    def test_result_filename(self):
        result = ChartResult(data=[], content=b"", fmt="png", media_type="image/png")

        assert result.filename == "funnel.png"


class TestRoutes:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_defaults(self, client, monkeypatch):
        monkeypatch.setenv("FUNNEL_HEIGHT", "450")
        body = client.get("/api/defaults").json()

        assert body["width"] == 1200
        assert body["height"] == 450
        assert body["gradient_base"] == 0
        assert body["format"] == "svg"
        assert '"blank"' in body["data"]

    def test_validate(self, client, sample_json):
        response = client.post("/api/validate", json={"data": sample_json})

        assert response.status_code == 200
        body = response.json()
        assert body["data"][2] == "blank"
        assert body["data"][0] == {"name": "did a thing", "count": 100}
        assert body["summary"] == {"steps": 3, "blanks": 1, "top_count": 100}

    def test_validate_rejects(self, client):
        response = client.post("/api/validate", json={"data": "{}"})

        assert response.status_code == 400
        assert response.json()["detail"] == "not an array"

    def test_chart_svg(self, client, sample_json):
        response = client.post("/api/charts", json={"data": sample_json, "width": 600, "height": 300})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "content-disposition" not in response.headers
        assert b"<svg" in response.content

    def test_chart_uses_default_data(self, client):
        response = client.post("/api/charts", json={"format": "PNG"})

        assert response.status_code == 200
        assert response.content.startswith(b"\x89PNG")

    def test_chart_download(self, client, sample_json):
        response = client.post("/api/charts", json={"data": sample_json, "download": True})

        assert response.headers["content-disposition"] == 'attachment; filename="funnel.svg"'

    @pytest.mark.parametrize("payload, message", [
        ({"format": "gif"}, "Unsupported format"),
        ({"gradient_base": 1}, "gradient base"),
        ({"width": 0}, "width"),
        ({"data": '[{"name": "a", "count": 1}, {"name": "b", "count": 2}]'}, "greater than"),
    ])
    def test_chart_rejects(self, client, payload, message):
        response = client.post("/api/charts", json=payload)

        assert response.status_code == 400
        assert message in response.json()["detail"]

    def test_upload_csv(self, client):
        csv = b"name,count\nvisited,100\nsigned up,40\nblank,\nbought,10\n"
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.csv", csv, "text/csv")},
            data={"width": "500", "height": "250", "download": "true"},
        )

        assert response.status_code == 200
        assert b"<svg" in response.content
        assert "funnel.svg" in response.headers["content-disposition"]

    def test_upload_json_png(self, client, sample_json):
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.json", sample_json.encode(), "application/json")},
            data={"format": "png"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"

    def test_upload_rejects_extension(self, client):
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.txt", b"[]", "text/plain")},
        )

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    def test_upload_reports_bad_rows(self, client):
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.csv", b"name,count\na,ten\n", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "step count not a number at index 0"

    def test_upload_xlsx(self, client):
        buffer = io.BytesIO()
        pd.DataFrame({
            "name":  ["visited", "signed up", "blank", "bought"],
            "count": [100, 40, None, 10],
        }).to_excel(buffer, index=False)
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.xlsx", buffer.getvalue(), XLSX_MEDIA_TYPE)},
        )

        assert response.status_code == 200
        assert b"<svg" in response.content

    def test_upload_rejects_legacy_xls(self, client):
        response = client.post(
            "/api/charts/upload",
            files={"file": ("funnel.xls", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504,
                            "application/vnd.ms-excel")},
        )

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    @pytest.mark.parametrize("filename, content", [
        ("funnel.csv", b""),
        ("funnel.csv", b"name,count\na,10\nb,5,3,1\n"),
        ("funnel.xlsx", b"not a spreadsheet"),
    ])
    def test_upload_unreadable_file(self, client, filename, content):
        response = client.post(
            "/api/charts/upload",
            files={"file": (filename, content, "application/octet-stream")},
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("could not read")
