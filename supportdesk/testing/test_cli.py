from __future__ import annotations

import json

from supportdesk.cli import support_cli


def test_tools_command_lists_all_tools(capsys):
    assert support_cli.main(["tools"]) == 0
    out = capsys.readouterr().out
    assert "search_knowledge_base(query)" in out
    assert "log_interaction(customerId, category, resolution)" in out


def test_call_command_success(capsys):
    code = support_cli.main(["call", "get_customer_data", "--args", '{"customerId": "C003"}'])
    assert code == 0
    body = json.loads(capsys.readouterr().out)
    assert body["result"]["name"] == "Carol White"


def test_call_command_reports_tool_errors(capsys):
    code = support_cli.main(["call", "missing_tool"])
    assert code == 1
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is False


def test_call_command_rejects_bad_json(capsys):
    code = support_cli.main(["call", "get_customer_data", "--args", "{nope"])
    assert code == 2
    assert "not valid JSON" in capsys.readouterr().err


def test_serve_command_uses_port(monkeypatch):
    captured = {}

    def fake_run(app, host, port, reload):
        captured.update(app=app, host=host, port=port)

    monkeypatch.setattr("uvicorn.run", fake_run)
    monkeypatch.setenv("PORT", "4100")
    assert support_cli.main(["serve"]) == 0
    assert captured == {"app": "supportdesk.main:app", "host": "0.0.0.0", "port": 4100}
