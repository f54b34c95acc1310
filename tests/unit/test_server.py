"""Tests for the control server endpoints."""
import inspect

import pytest
from fastapi.testclient import TestClient

from shimux.environment import ENABLED_VAR, LAUNCH_ID_VAR, SERVER_VAR
from shimux.server.main import app
from shimux.server.routers import pane, rpc


@pytest.fixture
def client(server_state):
    # No context manager: the lifespan would install the shim and reset state
    return TestClient(app)


def create(client, name=None):
    response = client.post("/rpc/create_pane", json={"name": name} if name else {})
    assert response.status_code == 200
    return response.text


class TestRPC:
    """Plain-text endpoints the shim calls."""

    def test_create_pane_returns_id(self, client):
        response = client.post("/rpc/create_pane", json={})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "%emacs-1"

    def test_create_pane_launch_failure(self, client, launcher, server_state):
        launcher.fail = True

        response = client.post("/rpc/create_pane", json={})

        assert response.status_code == 500
        assert "no such command" in response.json()["detail"]
        assert len(server_state.registry) == 0

    def test_list_panes(self, client):
        a = create(client)
        b = create(client)
        c = create(client)
        client.post("/rpc/kill_pane", json={"pane_id": b})

        response = client.get("/rpc/list_panes")

        assert response.text == f"{a}\n{c}"

    def test_list_panes_empty(self, client):
        assert client.get("/rpc/list_panes").text == ""

    def test_send_keys(self, client, launcher):
        pane_id = create(client)

        response = client.post("/rpc/send_keys", json={"pane_id": pane_id, "text": "make test"})

        assert response.text == "ok"
        assert launcher.terminals[0].written == ["make test\n"]

    @pytest.mark.parametrize("path,body", [
        ("/rpc/send_keys", {"pane_id": "%emacs-42", "text": "x"}),
        ("/rpc/kill_pane", {"pane_id": "%emacs-42"}),
        ("/rpc/send_interrupt", {"pane_id": "%emacs-42"}),
        ("/rpc/set_pane_info", {"pane_id": "%emacs-42", "title": "t", "color": "red"}),
    ])
    def test_unknown_pane_answers_ok(self, client, path, body):
        response = client.post(path, json=body)

        assert response.status_code == 200
        assert response.text == "ok"

    def test_set_pane_info_and_interrupt(self, client, launcher, server_state):
        pane_id = create(client)

        client.post("/rpc/set_pane_info", json={"pane_id": pane_id, "title": "tests", "color": "green"})
        client.post("/rpc/send_interrupt", json={"pane_id": pane_id})

        assert server_state.registry.get(pane_id).title == "tests"
        assert launcher.terminals[0].indicator == ("tests", "green")
        assert launcher.terminals[0].interrupts == 1

    def test_sessions(self, client):
        assert client.post("/rpc/has_session", json={"name": "team"}).text == "false"
        assert client.post("/rpc/register_session", json={"name": "team"}).text == "%0"
        assert client.post("/rpc/register_session", json={"name": "team"}).text == "%0"
        assert client.post("/rpc/has_session", json={"name": "team"}).text == "true"

        assert client.get("/session/").json() == [{"name": "team", "leader": "%0"}]

    def test_rebalance(self, client):
        create(client)

        assert client.post("/rpc/rebalance").text == "ok"


class TestPanes:
    """Dashboard endpoints."""

    def test_dashboard_shows_status(self, client, launcher):
        a = create(client, "first")
        b = create(client)
        c = create(client)
        launcher.terminals[1].exit(0)
        client.post("/pane/close-surface", json={"pane_id": c})

        rows = client.get("/pane/").json()

        assert [(row["id"], row["status"]) for row in rows] == [
            (a, "running"), (b, "finished"), (c, "dead")]
        assert rows[0]["name"] == "first"
        assert client.get("/rpc/list_panes").text == f"{a}\n{b}"

    def test_output(self, client, launcher):
        pane_id = create(client)
        launcher.terminals[0].lines = ["$ ls", "README.md", "$"]

        response = client.get("/pane/output", params={"pane_id": pane_id, "lines": 2})

        assert response.json() == {"pane_id": pane_id, "lines": ["README.md", "$"]}


class TestLayout:
    """Layout and focus endpoints."""

    def test_show_all_and_toggle(self, client):
        ids = [create(client) for _ in range(4)]

        tiled = client.post("/layout/show-all").json()
        assert tiled == {"status": "tiled", "shown": ids[:3], "hidden": ids[3:]}

        layout = client.get("/layout").json()
        assert layout["snapshot"] is True
        assert [v["pane_id"] for v in layout["viewports"]] == ids[:3]
        assert [v["width"] for v in layout["viewports"]] == [80, 80, 80]

        assert client.post("/layout/toggle").json()["status"] == "restored"
        layout = client.get("/layout").json()
        assert layout["snapshot"] is False
        assert [v["pane_id"] for v in layout["viewports"]] == [ids[3]]

    def test_show_all_without_panes(self, client):
        assert client.post("/layout/show-all").json()["status"] == "no-panes"

    def test_resize(self, client):
        create(client)
        create(client)
        client.post("/layout/show-all")

        layout = client.post("/layout/resize", json={"width": 100}).json()

        assert layout["width"] == 100
        assert [v["width"] for v in layout["viewports"]] == [50, 50]

    def test_next_prev(self, client):
        a, b = create(client), create(client)
        client.post("/layout/show-all")
        client.post("/focus/select", json={"pane_id": a})

        assert client.post("/focus/next").json() == {"status": "focused", "pane_id": b}
        assert client.post("/focus/next").json() == {"status": "focused", "pane_id": a}
        assert client.post("/focus/prev").json() == {"status": "focused", "pane_id": b}
        assert client.get("/focus").json() == {"status": "focused", "pane_id": b}

    def test_focus_without_panes(self, client):
        assert client.post("/focus/next").json() == {"status": "no-panes", "pane_id": None}
        assert client.get("/focus").json()["status"] == "no-panes"

    def test_select_by_label(self, client):
        a = create(client)
        b = create(client)
        client.post("/rpc/set_pane_info", json={"pane_id": b, "title": "reviewer"})

        candidates = client.get("/focus/candidates").json()
        assert candidates == [{"label": a, "pane_id": a}, {"label": "reviewer", "pane_id": b}]

        response = client.post("/focus/select", json={"label": "reviewer"})
        assert response.json() == {"status": "focused", "pane_id": b}

        response = client.post("/focus/select", json={"label": "nobody"})
        assert response.json()["status"] == "cancelled"


class TestSessionStart:
    """Launching the subagent command."""

    @pytest.fixture
    def launches(self, monkeypatch, make_terminal):
        calls = []

        def fake_launch_terminal(command=None, cwd=None, env=None):
            calls.append({"command": command, "cwd": cwd, "env": env})
            return make_terminal()

        monkeypatch.setattr("shimux.server.routers.session.launch_terminal", fake_launch_terminal)
        return calls

    def test_start_default_command(self, client, launches, server_state):
        response = client.post("/session/start", json={"cwd": "/work"})

        assert response.status_code == 200
        body = response.json()
        assert body == {"pane_id": "%emacs-1", "command": ["claude"]}

        call = launches[0]
        assert call["command"] == ["claude"]
        assert call["cwd"] == "/work"
        assert call["env"]["TMUX_PANE"] == "%0"
        assert call["env"][ENABLED_VAR] == "1"
        assert call["env"][SERVER_VAR] == "http://127.0.0.1:21591"
        assert call["env"]["PATH"].startswith(str(server_state.shim_dir()))

        assert server_state.registry.get("%emacs-1").name == "claude"
        assert client.get("/focus").json()["pane_id"] == "%emacs-1"

    def test_each_start_gets_new_launch_id(self, client, launches):
        client.post("/session/start", json={"command": ["aider", "--yes"], "name": "helper"})
        client.post("/session/start", json={"command": ["aider"]})

        assert launches[0]["command"] == ["aider", "--yes"]
        assert launches[0]["env"][LAUNCH_ID_VAR] != launches[1]["env"][LAUNCH_ID_VAR]

    def test_unknown_backend(self, client, launches, default_config):
        default_config.launch.backend = "vterm"

        response = client.post("/session/start", json={})

        assert response.status_code == 400
        assert "vterm" in response.json()["detail"]
        assert launches == []

    def test_launch_failure(self, client, monkeypatch, server_state):
        from shimux.terminal import LaunchError

        def failing_launch(command=None, cwd=None, env=None):
            raise LaunchError(f"Failed to launch {command[0]}")

        monkeypatch.setattr("shimux.server.routers.session.launch_terminal", failing_launch)

        response = client.post("/session/start", json={"command": ["missing-tool"]})

        assert response.status_code == 500
        assert "missing-tool" in response.json()["detail"]
        assert len(server_state.registry) == 0


def test_root(client):
    create(client)

    info = client.get("/").json()

    assert info["status"] == "running"
    assert info["panes"] == 1
    assert info["live"] == 1


@pytest.mark.parametrize("endpoint", [rpc.kill_pane, pane.close_surface])
def test_blocking_endpoints_run_in_threadpool(endpoint):
    # Terminal.kill waits for the child to be reaped
    assert not inspect.iscoroutinefunction(endpoint)
