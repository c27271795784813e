import json

import httpx
from typer.testing import CliRunner

from request_dashboard import cli
from request_dashboard.cache import CacheStore
from request_dashboard.models import CacheEntry
from request_dashboard.viewmodel import RequestListViewModel

runner = CliRunner()

ROWS = [
    {"ID": "2", "Status": "closed", "Notes": "Replaced the compressor and tested the unit"},
    {"ID": "1", "Status": "new", "Notes": "Air conditioner in room 204 is leaking water"},
    {},
]


def _patch_view_model(monkeypatch, tmp_path, rows=ROWS, fail=False):
    def handler(request):
        if fail:
            raise httpx.ConnectError("offline", request=request)
        return httpx.Response(200, json=rows)

    def factory():
        return RequestListViewModel(
            "https://rows.example.com/exec",
            CacheStore(tmp_path / "storage.json"),
            client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    monkeypatch.setattr(cli, "_build_view_model", factory)


def test_show_json_outputs_projection(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path)

    result = runner.invoke(cli.app, ["--log-level", "WARNING", "show", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["total"] == 2
    assert [row["ID"] for row in payload["rows"]] == ["1", "2"]


def test_show_table_truncates_long_cells(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path)

    result = runner.invoke(cli.app, ["show", "--status", "new"], env={"COLUMNS": "200"})

    assert result.exit_code == 0, result.output
    assert "Showing 1 of 2 requests" in result.output
    assert "Air conditioner in room 204 is leaki..." in result.output


def test_show_rejects_unknown_status(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path)

    result = runner.invoke(cli.app, ["show", "--status", "archived"])

    assert result.exit_code != 0


def test_show_reports_empty_result_when_offline(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path, fail=True)

    result = runner.invoke(cli.app, ["show"])

    assert result.exit_code == 0
    assert "No data available for the current filter." in result.output


def test_copy_copies_full_cell(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path)
    copied = []
    monkeypatch.setattr(
        "request_dashboard.viewmodel.copy_to_clipboard",
        lambda text, **kwargs: copied.append(text) or True,
    )

    result = runner.invoke(cli.app, ["copy", "1", "Notes"])

    assert result.exit_code == 0, result.output
    assert copied == ["Air conditioner in room 204 is leaking water"]


def test_copy_failure_exits_nonzero(monkeypatch, tmp_path):
    _patch_view_model(monkeypatch, tmp_path)
    monkeypatch.setattr(
        "request_dashboard.viewmodel.copy_to_clipboard", lambda text, **kwargs: False
    )

    result = runner.invoke(cli.app, ["copy", "1", "3"])

    assert result.exit_code == 1


def test_clear_cache(monkeypatch, tmp_path):
    path = tmp_path / "storage.json"
    CacheStore(path).write(CacheEntry(captured_at=1, rows=[]))
    monkeypatch.setenv("DASHBOARD_CACHE_PATH", str(path))

    result = runner.invoke(cli.app, ["clear-cache"])

    assert result.exit_code == 0
    assert CacheStore(path).read() is None


def test_important_columns_are_highlighted(monkeypatch, tmp_path):
    rows = [{"ID": "1", "Status": "pending", "Chờ Xác Nhận": "Yes", "Notes": "ok"}]
    _patch_view_model(monkeypatch, tmp_path, rows=rows)
    view_model = cli._load("all")

    table = cli._render_table(view_model, False, ["Chờ Xác Nhận"])

    styles = {column.header: column.style for column in table.columns}
    assert styles["Chờ Xác Nhận"] == cli.IMPORTANT_STYLE
    assert styles["Notes"] == ""


def test_important_fields_setting_accepts_json_list(monkeypatch):
    from request_dashboard.config import get_settings

    monkeypatch.setenv("IMPORTANT_FIELDS", '["Priority"]')
    assert get_settings().important_fields == ["Priority"]
