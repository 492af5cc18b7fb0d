"""Tests for the gltf-components CLI commands."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

from gltf_components.cli import main
from gltf_components.component import ComponentInstance
from gltf_components.schema import SchemaDocument

REPO_ROOT = Path(__file__).resolve().parents[2]

LIGHT = {"properties": {"color": {"type": "color", "default": "#ffffff"}}}
LINK = {"properties": {"href": {"type": "string"}}}
TRIGGER = {"properties": {"target": {"type": "nodeRef"}}}


def _schema_json(components: dict, types: dict | None = None) -> dict:
    return {"components": components, "types": types or {}}


def _scene_json(records_by_node: dict[str, list[dict]]) -> dict:
    return {
        "version": 1,
        "entities": {
            uuid: {
                "name": uuid.title(),
                "components": [
                    {"name": "transform", "props": {"position": {"x": 0, "y": 0, "z": 0}}},
                    {"name": "hubsComponents", "props": {"value": records}},
                ],
            }
            for uuid, records in records_by_node.items()
        },
    }


def _record(name: str, schema_json: dict, **data) -> dict:
    schema = SchemaDocument(json.dumps(schema_json))
    instance = ComponentInstance.create(name, schema)
    instance.data.update(data)
    return instance.serialize()


@pytest.fixture
def old_schema() -> dict:
    return _schema_json({"light": LIGHT, "link": LINK, "foo": LINK})


@pytest.fixture
def new_schema() -> dict:
    light = {"properties": {**LIGHT["properties"], "intensity": {"type": "number", "default": 1}}}
    return _schema_json({"light": light, "link": LINK})


@pytest.fixture
def scene_path(write_json, old_schema) -> Path:
    return write_json(
        "scene.json",
        _scene_json(
            {
                "lamp": [_record("light", old_schema), _record("foo", old_schema)],
                "sign": [_record("link", old_schema, href="https://example.com")],
            }
        ),
    )


# =============================================================================
# check / components
# =============================================================================


def test_no_command_prints_help(capsys):
    """Running without a command shows usage and fails."""
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_check_default_schema(capsys):
    """The bundled schema document has no issues."""
    assert main(["check"]) == 0
    assert capsys.readouterr().out.startswith("OK:")


def test_check_reports_issues(write_json, capsys):
    """Missing composite types are printed with their path."""
    path = write_json(
        "broken.json",
        _schema_json({"route": {"properties": {"stops": {"type": "array", "arrayType": "stop"}}}}),
    )
    assert main(["check", str(path)]) == 1
    assert "components.route.properties.stops" in capsys.readouterr().out


def test_check_invalid_json(tmp_path):
    """Unparseable documents fail cleanly."""
    path = tmp_path / "bad.json"
    path.write_text("{nope", encoding="utf-8")
    assert main(["check", str(path)]) == 1


def test_check_uses_environment(write_json, monkeypatch, capsys):
    """GLTF_COMPONENTS_CONFIG selects the schema document."""
    path = write_json("config.json", _schema_json({"link": LINK}))
    monkeypatch.setenv("GLTF_COMPONENTS_CONFIG", str(path))
    assert main(["check"]) == 0
    assert "1 components" in capsys.readouterr().out


def test_components_for_node(capsys):
    """Node filtering lists generic and node-specific components."""
    assert main(["components", "--node", "Point Light"]) == 0
    out = capsys.readouterr().out.splitlines()
    names = [line.split()[0] for line in out]
    assert "point-light" in names
    assert "waypoint" in names
    assert "loop-animation" not in names


def test_components_shows_tags(capsys):
    """Multi-instance components are tagged."""
    assert main(["components"]) == 0
    assert "loop-animation  (multiple; nodes: Model)" in capsys.readouterr().out


# =============================================================================
# status / migrate
# =============================================================================


def test_status_counts_outdated(scene_path, write_json, new_schema, capsys):
    """Drifted components make status fail."""
    config = write_json("config.json", new_schema)
    assert main(["status", str(scene_path), "--config", str(config)]) == 1
    assert "2 of 3 components outdated" in capsys.readouterr().out


def test_status_up_to_date(scene_path, write_json, old_schema, capsys):
    """A scene matching its schema document passes."""
    config = write_json("config.json", old_schema)
    assert main(["status", str(scene_path), "-c", str(config)]) == 0
    assert "0 of 3" in capsys.readouterr().out


def test_status_missing_scene(tmp_path):
    """A missing scene file fails cleanly."""
    assert main(["status", str(tmp_path / "missing.json")]) == 1


def test_migrate_writes_output(scene_path, write_json, new_schema, tmp_path, capsys):
    """Migration updates, deletes and keeps components and preserves other entries."""
    config = write_json("config.json", new_schema)
    out = tmp_path / "migrated.json"

    assert main(["migrate", str(scene_path), "-c", str(config), "-o", str(out)]) == 0
    assert "updated: 1, deleted: 1, unchanged: 1, failed: 0" in capsys.readouterr().out

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["version"] == 1
    lamp = data["entities"]["lamp"]
    assert lamp["components"][0]["name"] == "transform"
    records = lamp["components"][1]["props"]["value"]
    assert [r["name"] for r in records] == ["light"]
    assert records[0]["data"] == {"color": [1.0, 1.0, 1.0], "intensity": 1}

    assert main(["status", str(out), "-c", str(config)]) == 0


def test_migrate_dry_run_leaves_file(scene_path, write_json, new_schema):
    """Dry runs never write."""
    before = scene_path.read_text(encoding="utf-8")
    config = write_json("config.json", new_schema)
    assert main(["migrate", str(scene_path), "-c", str(config), "--dry-run"]) == 0
    assert scene_path.read_text(encoding="utf-8") == before


def test_migrate_reports_failures(scene_path, write_json, capsys):
    """A component whose new definition cannot resolve is kept and reported."""
    broken = _schema_json(
        {
            "light": {"properties": {"steps": {"type": "array", "arrayType": "missing"}}},
            "link": LINK,
            "foo": LINK,
        }
    )
    config = write_json("config.json", broken)
    assert main(["migrate", str(scene_path), "-c", str(config)]) == 1
    out = capsys.readouterr().out
    assert "failed: 1" in out
    assert "failed light" in out


# =============================================================================
# export / env
# =============================================================================


def test_export_resolves_references(write_json, tmp_path):
    """Export writes extension bags and index markers."""
    schema_json = _schema_json({"trigger": TRIGGER})
    config = write_json("config.json", schema_json)
    scene = write_json(
        "scene.json",
        _scene_json(
            {
                "switch": [_record("trigger", schema_json, target={"uuid": "door"})],
                "door": [],
            }
        ),
    )
    out = tmp_path / "export.json"

    assert main(["export", str(scene), "-c", str(config), "-o", str(out), "-e", "EXT_test"]) == 0
    exported = json.loads(out.read_text(encoding="utf-8"))
    assert exported["switch"]["extensions"]["EXT_test"]["trigger"] == {
        "target": {"__gltfIndexForUUID": "door"}
    }
    assert exported["door"]["extensions"]["EXT_test"] == {"__noderef": {}}


def test_export_unset_reference_fails(write_json):
    """An empty node reference aborts the export."""
    schema_json = _schema_json({"trigger": TRIGGER})
    config = write_json("config.json", schema_json)
    scene = write_json("scene.json", _scene_json({"switch": [_record("trigger", schema_json)]}))
    assert main(["export", str(scene), "-c", str(config)]) == 1


def test_env_lists_variables(capsys):
    """env prints every configuration variable with its value."""
    assert main(["env"]) == 0
    out = capsys.readouterr().out
    assert "GLTF_EXTENSION_NAME=MOZ_hubs_components" in out
    assert "GLTF_COMPONENTS_CONFIG=" in out


def test_env_category_filter(capsys):
    """env --category limits the listing."""
    assert main(["env", "--category", "logging"]) == 0
    out = capsys.readouterr().out
    assert "GLTF_COMPONENTS_LOG_LEVEL=INFO" in out
    assert "GLTF_EXTENSION_NAME" not in out


def test_module_entry_point():
    """python -m gltf_components runs the CLI."""
    result = subprocess.run(
        [sys.executable, "-m", "gltf_components", "--help"],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        timeout=30,
    )
    assert result.returncode == 0
    assert "migrate" in result.stdout
