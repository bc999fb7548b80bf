import json

from graphs import link, node, workflow
from typer.testing import CliRunner

from everywhere.cli import app

runner = CliRunner()


def _wf():
    return workflow(
        [
            node(1, "Loader", outputs=[("MODEL", "MODEL", [1])]),
            node(2, "Anything Everywhere", inputs=[("anything", "*", 1)]),
            node(3, "KSampler", inputs=[("model", "MODEL", None)], outputs=[("LATENT", "LATENT", [])]),
        ],
        [link(1, 1, 0, 2, 0, "MODEL")],
    )


def _loop_wf():
    wf = _wf()
    # sampler output wired back into the loader
    wf["nodes"][0]["inputs"] = [{"name": "latent", "type": "LATENT", "link": 2}]
    wf["nodes"][2]["outputs"] = [{"name": "LATENT", "type": "LATENT", "links": [2]}]
    wf["links"].append(link(2, 3, 0, 1, 0, "LATENT"))
    return wf


def _write(tmp_path, name, data):
    f = tmp_path / name
    f.write_text(json.dumps(data))
    return f


def test_resolve_json(tmp_path):
    f = _write(tmp_path, "wf.json", _wf())
    result = runner.invoke(app, ["resolve", str(f), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["assignments"] == [
        {
            "downstream": "3",
            "input": "model",
            "upstream": "2",
            "output": "anything",
            "controller": "2",
            "type": "MODEL",
        }
    ]
    assert data["loop"] is None


def test_resolve_table_and_links_tree(tmp_path):
    f = _write(tmp_path, "wf.json", _wf())
    result = runner.invoke(app, ["resolve", str(f)])
    assert result.exit_code == 0
    assert "Virtual Links" in result.output

    result = runner.invoke(app, ["links", str(f), "--details"])
    assert result.exit_code == 0
    assert "2.anything → model" in result.output


def test_check_reports_loop(tmp_path):
    ok = _write(tmp_path, "ok.json", _wf())
    assert runner.invoke(app, ["check", str(ok)]).exit_code == 0

    bad = _write(tmp_path, "bad.json", _loop_wf())
    result = runner.invoke(app, ["check", str(bad)])
    assert result.exit_code == 1
    assert "Loop" in result.output


def test_submit_writes_augmented_payload(tmp_path):
    payload = {"workflow": _wf(), "output": {"3": {"class_type": "KSampler", "inputs": {}}}}
    f = _write(tmp_path, "prompt.json", payload)
    out = tmp_path / "out.json"
    result = runner.invoke(app, ["submit", str(f), "-o", str(out)])
    assert result.exit_code == 0, result.output
    written = json.loads(out.read_text())
    assert written["output"]["3"]["inputs"]["model"] == ["1", 0]


def test_submit_refuses_loop(tmp_path):
    payload = {"workflow": _loop_wf(), "output": {"3": {"inputs": {}}}}
    f = _write(tmp_path, "prompt.json", payload)
    out = tmp_path / "out.json"
    result = runner.invoke(app, ["submit", str(f), "-o", str(out)])
    assert result.exit_code == 1
    assert not out.exists()

    result = runner.invoke(app, ["submit", str(f), "-o", str(out), "--no-loop-check"])
    assert result.exit_code == 0
    assert out.exists()


def test_bad_settings_file(tmp_path):
    f = _write(tmp_path, "wf.json", _wf())
    s = tmp_path / "s.yml"
    s.write_text("check_loops: maybe\n")
    result = runner.invoke(app, ["resolve", str(f), "--settings", str(s)])
    assert result.exit_code == 1
