"""
Test CLI
========

Runs the command line front end against scene files written to a
temporary directory.

Usage:
    pytest test_cli.py
"""

import json
import logging

import pytest
import yaml

from cdsp_cli.cli import load_yaml_scene, main, run_task
from cdsp_geometry import PlanarProjection, WebMercatorProjection
from cdsp_logging import LogEvent, create_logger
from cdsp_session import EmptyTargetsError

SCENE = {
    "projection": "planar",
    "zoom": 0,
    "geometries": [
        {
            "id": "parcel",
            "type": "Polygon",
            "coordinates": [[[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]]],
            "properties": {"owner": "A"},
        },
        {"id": "cut", "type": "LineString", "coordinates": [[2, -1], [2, 5]]},
        {"id": "p1", "type": "Point", "coordinates": [10, 10]},
        {"id": "p2", "type": "Point", "coordinates": [11, 11]},
        {
            "id": "islands",
            "type": "MultiPoint",
            "coordinates": [[20, 20], [21, 21], [22, 22]],
        },
    ],
}


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.yaml"
    path.write_text(yaml.safe_dump(SCENE))
    return path


def test_load_yaml_scene(scene_file, tmp_path):
    scene = load_yaml_scene(str(scene_file), tolerance=0.25)

    assert len(scene["layer"]) == 5
    assert scene["layer"].tolerance == 0.25
    assert isinstance(scene["projection"], PlanarProjection)
    assert scene["zoom"] == 0

    mercator = tmp_path / "mercator.yaml"
    mercator.write_text("projection: web_mercator\n")
    assert isinstance(load_yaml_scene(str(mercator))["projection"], WebMercatorProjection)

    with pytest.raises(FileNotFoundError):
        load_yaml_scene(str(tmp_path / "missing.yaml"))

    broken = tmp_path / "broken.yaml"
    broken.write_text("geometries: [\n")
    with pytest.raises(ValueError):
        load_yaml_scene(str(broken))


def test_run_task_split(scene_file):
    print("\n" + "=" * 60)
    print("TEST: CLI Split")
    print("=" * 60)

    scene = load_yaml_scene(str(scene_file))

    outcome = run_task("split", scene, "parcel", target_ids=["cut"])

    assert len(outcome.result) == 2
    assert all(piece.properties == {"owner": "A"} for piece in outcome.result)
    assert scene["layer"].get_geometry_by_id("cut") is None
    assert len(scene["layer"]) == 5
    print("✓ parcel split, cut consumed")


def test_run_task_decompose_with_deselect(scene_file):
    scene = load_yaml_scene(str(scene_file))

    outcome = run_task("decompose", scene, "islands", deselect=[0, 2])

    assert outcome.result.coordinates == [(21.0, 21.0)]
    assert [d.coordinates for d in outcome.deals] == [(20.0, 20.0), (22.0, 22.0)]

    with pytest.raises(ValueError):
        run_task("decompose", load_yaml_scene(str(scene_file)), "islands", deselect=[5])


def test_run_task_errors(scene_file):
    scene = load_yaml_scene(str(scene_file))

    with pytest.raises(ValueError):
        run_task("split", scene, "nowhere", target_ids=["cut"])
    with pytest.raises(ValueError):
        run_task("peel", scene, "p1", target_ids=["p2"])
    with pytest.raises(EmptyTargetsError):
        run_task("peel", scene, "parcel")


def test_main_writes_report(scene_file, tmp_path):
    output = tmp_path / "out.yaml"
    config = tmp_path / "config.yaml"
    config.write_text("log_level: WARNING\n")

    code = main([
        "--config", str(config),
        "--output", str(output),
        "combine", str(scene_file), "--source", "p1", "--targets", "p2",
    ])

    assert code == 0
    report = yaml.safe_load(output.read_text())
    assert report["task"] == "combine"
    assert report["result"][0]["type"] == "MultiPoint"
    assert report["result"][0]["coordinates"] == [[10.0, 10.0], [11.0, 11.0]]
    assert [d["id"] for d in report["deals"]] == ["p1", "p2"]
    assert len(report["geometries"]) == 4


def test_main_prints_to_stdout(scene_file, capsys):
    code = main(["split", str(scene_file), "--source", "parcel", "--targets", "cut"])

    assert code == 0
    report = yaml.safe_load(capsys.readouterr().out)
    assert report["task"] == "split"
    assert len(report["result"]) == 2


def test_main_reports_errors(scene_file, tmp_path, capsys):
    assert main(["peel", str(scene_file), "--source", "parcel"]) == 1
    assert "Error:" in capsys.readouterr().err

    assert main(["split", str(tmp_path / "missing.yaml"), "--source", "parcel"]) == 1
    assert main([]) == 1


def test_structured_logger_emits_json(caplog):
    logger = create_logger("test_cli", "debug")

    with caplog.at_level(logging.DEBUG, logger="cdsp.test_cli"):
        logger.info(
            event=LogEvent.CONFIG_LOADED,
            message="Loaded config",
            metadata={'path': 'config.yaml'},
        )
        logger.error(
            event=LogEvent.SESSION_STATE_ERROR,
            message="Nothing to submit",
            exc_info=ValueError("boom"),
        )

    info, error = [json.loads(r.getMessage()) for r in caplog.records[-2:]]
    assert info["component"] == "test_cli"
    assert info["event"] == "config.loaded"
    assert info["metadata"] == {'path': 'config.yaml'}
    assert error["level"] == "ERROR"
    assert error["exception"] == {'type': 'ValueError', 'message': 'boom'}


def test_event_taxonomy_is_partitioned():
    from cdsp_logging.events import (
        ERROR_EVENTS,
        SELECTION_EVENTS,
        TASK_EVENTS,
        TRANSFORM_EVENTS,
    )

    categories = [TASK_EVENTS, SELECTION_EVENTS, TRANSFORM_EVENTS, ERROR_EVENTS]
    categorized = set().union(*categories)

    assert sum(len(c) for c in categories) == len(categorized)
    assert set(LogEvent) - categorized == {LogEvent.CONFIG_LOADED}
    assert all(event.value.count(".") == 1 for event in LogEvent)
