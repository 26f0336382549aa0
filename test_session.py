"""
Test Editing Session
====================

Task lifecycle, pointer selection, previews, commit callbacks and the
session configuration.

Usage:
    pytest test_session.py
"""

import json
import logging

import pytest

from cdsp_geometry import Geometry, GeometryKind, VectorLayer
from cdsp_session import (
    CDSPConfig,
    CDSPSession,
    Combining,
    Decomposing,
    EmptyTargetsError,
    Idle,
    Peeling,
    SessionStateError,
    Splitting,
    TaskKind,
    symbol_or_default,
)

SQUARE = [(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)]


def _points_layer():
    layer = VectorLayer("wells", tolerance=0.5)
    p1 = layer.add(Geometry.point((0, 0), id="p1"))
    p2 = layer.add(Geometry.point((1, 1), id="p2"))
    p3 = layer.add(Geometry.point((5, 5), id="p3"))
    return layer, p1, p2, p3


def test_combine_with_batch_selection():
    print("\n" + "=" * 60)
    print("TEST: Combine Task")
    print("=" * 60)

    layer, p1, p2, p3 = _points_layer()
    session = CDSPSession()
    received = []

    assert session.combine(p1) is session
    assert isinstance(session.state, Combining)
    assert session.chosen == (p1,)

    session.choose([p2, p1])
    assert session.chosen == (p1, p2)
    print("✓ source ignored in batch, p2 chosen")

    outcome = session.submit(lambda result, deals: received.append((result, deals)))

    assert outcome.task is TaskKind.COMBINE
    assert outcome.result.kind is GeometryKind.MULTI_POINT
    assert outcome.result.coordinates == [(0.0, 0.0), (1.0, 1.0)]
    assert layer.get_geometries() == [p3, outcome.result]
    assert len(received) == 1
    assert received[0][0] is outcome.result
    assert len(received[0][1]) == 2
    assert isinstance(session.state, Idle)
    assert session.last_result is outcome
    print("✓ callback invoked once, session back to Idle")


def test_pointer_selection():
    layer, p1, p2, p3 = _points_layer()
    square = layer.add(Geometry.polygon([(10, 10), (12, 10), (12, 12), (10, 12)]))
    session = CDSPSession()
    session.combine(p1)

    assert session.pointer_move((1.1, 1.0)) is p2
    assert session.hit is p2
    assert session.click((1.1, 1.0)) == (p1, p2)
    assert session.click((1.1, 1.0)) == (p1,)

    # The source itself can be hovered but not toggled
    assert session.pointer_move((0, 0)) is p1
    assert session.click((0, 0)) == (p1,)

    # Polygons are not in the point family
    assert session.pointer_move((11, 11)) is None
    assert square.layer is layer
    assert session.click((11, 11)) == (p1,)


def test_preview_colors():
    layer, p1, p2, _ = _points_layer()
    config = CDSPConfig(hit_color="#FF0000", choose_color="#0000ff", line_width=2)
    session = CDSPSession(config=config)

    assert session.preview() == []

    session.combine(p1)
    session.pointer_move((1, 1))
    previews = session.preview()

    assert len(previews) == 2
    assert previews[0].symbol["markerFill"] == "#0000ff"
    assert previews[1].symbol["markerFill"] == "#ff0000"
    assert previews[0].layer is None
    assert p1.symbol is None


def test_symbol_or_default_recolors_existing_symbols():
    config = CDSPConfig()
    line = Geometry.line_string(
        [(0, 0), (1, 1)],
        symbol={"lineColor": "#000000", "polygonFill": "#ffffff", "opacity": 0.5},
    )

    symbol = symbol_or_default(line, config.hit_sv_color, 6)

    assert symbol == {"lineColor": "#ffa400", "polygonFill": "#ffa400", "opacity": 0.5, "lineWidth": 6}
    assert line.symbol["lineColor"] == "#000000"

    bare = symbol_or_default(Geometry.polygon(SQUARE), config.choose_sv_color, 4)
    assert bare == {"lineColor": "#00bcd4", "lineWidth": 4}


def test_decompose_and_deselect():
    print("\n" + "=" * 60)
    print("TEST: Decompose Task")
    print("=" * 60)

    layer = VectorLayer("islands")
    multi = layer.add(Geometry(
        GeometryKind.MULTI_POLYGON,
        [
            [[(0, 0), (2, 0), (2, 2), (0, 2)]],
            [[(5, 0), (7, 0), (7, 2), (5, 2)]],
        ],
        properties={"name": "atoll"},
    ))
    session = CDSPSession()

    session.decompose(multi)
    assert isinstance(session.state, Decomposing)
    assert len(session.children) == 2
    assert len(session.chosen) == 2

    # Clicking a chosen part releases it; clicking again re-adds the hover
    assert session.pointer_move((6, 1)) is session.children[1]
    assert session.click((6, 1)) == (session.children[0],)
    assert session.click((6, 1)) == (session.children[0], session.children[1])
    assert session.click((6, 1)) == (session.children[0],)

    outcome = session.submit()

    assert outcome.result.kind is GeometryKind.MULTI_POLYGON
    assert len(outcome.result.coordinates) == 1
    assert outcome.result.properties == {"name": "atoll"}
    assert len(outcome.deals) == 1
    assert outcome.deals[0].kind is GeometryKind.POLYGON
    assert outcome.deals[0].properties == {"name": "atoll"}
    assert layer.get_geometries() == [outcome.result, outcome.deals[0]]
    assert session.children == []
    print("✓ one part kept, one released as a standalone polygon")


def test_decompose_without_changes_round_trips():
    layer = VectorLayer()
    multi = layer.add(Geometry(GeometryKind.MULTI_POINT, [(0, 0), (1, 1)]))
    session = CDSPSession()

    session.decompose(multi)
    outcome = session.submit()

    assert outcome.result.coordinates == multi.coordinates
    assert outcome.deals == []
    assert layer.get_geometries() == [outcome.result]


def test_peel_immediately():
    print("\n" + "=" * 60)
    print("TEST: Peel Task")
    print("=" * 60)

    layer = VectorLayer()
    big = layer.add(Geometry.polygon([(0, 0), (10, 0), (10, 10), (0, 10)]))
    hole = layer.add(Geometry.polygon([(1, 1), (3, 1), (3, 3), (1, 3)]))
    islands = layer.add(Geometry(
        GeometryKind.MULTI_POLYGON,
        [
            [[(5, 5), (6, 5), (6, 6), (5, 6)]],
            [[(7, 7), (8, 7), (8, 8), (7, 8)]],
        ],
    ))
    received = []
    session = CDSPSession()

    started = session.peel(big, [hole, islands], callback=lambda r, d: received.append((r, d)))

    assert started is session
    assert isinstance(session.state, Idle)
    result = session.last_result.result
    assert len(result.coordinates) == 1 + 1 + 2
    assert layer.get_geometries() == [result]
    assert len(received) == 1
    assert len(received[0][1]) == 2
    print(f"✓ {len(result.coordinates)} rings after peel")


def test_peel_hover_excludes_source():
    layer = VectorLayer()
    big = layer.add(Geometry.polygon([(0, 0), (10, 0), (10, 10), (0, 10)]))
    hole = layer.add(Geometry.polygon([(1, 1), (3, 1), (3, 3), (1, 3)]))
    session = CDSPSession()

    session.peel(big)
    assert isinstance(session.state, Peeling)
    assert session.pointer_move((8, 8)) is None
    assert session.pointer_move((2, 2)) is hole
    session.click((2, 2))
    outcome = session.submit()

    assert len(outcome.result.coordinates) == 2


def test_split_with_pointer_and_submit():
    print("\n" + "=" * 60)
    print("TEST: Split Task")
    print("=" * 60)

    layer = VectorLayer("parcels", tolerance=0.1)
    parcel = layer.add(Geometry.polygon(SQUARE, id="parcel"))
    other = layer.add(Geometry.polygon([(10, 10), (12, 10), (12, 12), (10, 12)]))
    cut = layer.add(Geometry.line_string([(2, -1), (2, 5)], id="cut"))
    session = CDSPSession()

    session.split(parcel)
    assert isinstance(session.state, Splitting)
    assert session.pointer_move((11, 11)) is None
    assert session.pointer_move((2, 4.5)) is cut
    session.click((2, 4.5))
    outcome = session.submit()

    assert len(outcome.result) == 2
    assert layer.get_geometries() == [outcome.result[0], outcome.result[1], other]
    assert cut.layer is None
    assert [d.id for d in outcome.deals] == ["parcel", "cut"]
    print("✓ parcel replaced in place by its two halves")


def test_split_line_immediately():
    layer = VectorLayer()
    road = layer.add(Geometry.line_string([(0, 0), (4, 0)]))
    cut = layer.add(Geometry.line_string([(2, -1), (2, 1)]))
    session = CDSPSession()

    session.split(road, cut)

    pieces = session.last_result.result
    assert len(pieces) == 2
    assert layer.get_geometries() == pieces


def test_split_without_crossing_keeps_source():
    layer = VectorLayer()
    parcel = layer.add(Geometry.polygon(SQUARE))
    far = layer.add(Geometry.line_string([(10, 10), (11, 11)]))
    session = CDSPSession()

    session.split(parcel, [far])

    outcome = session.last_result
    assert outcome.result == [parcel]
    assert parcel.layer is layer
    assert far.layer is None
    assert len(outcome.deals) == 1


def test_split_through_a_vertex_keeps_source(caplog):
    layer = VectorLayer()
    parcel = layer.add(Geometry.polygon(SQUARE, id="parcel"))
    corner = layer.add(Geometry.line_string([(3, 5), (5, 3)], id="corner"))
    session = CDSPSession()

    with caplog.at_level(logging.DEBUG, logger="cdsp.session"):
        session.split(parcel, [corner])

    outcome = session.last_result
    assert outcome.result == [parcel]
    assert parcel in layer
    assert layer.get_geometry_by_id("parcel") is parcel
    assert [d.id for d in outcome.deals] == ["corner"]

    events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "cdsp.session"]
    skipped = [e for e in events if e["event"] == "split.skipped"]
    assert len(skipped) == 1
    assert skipped[0]["level"] == "WARNING"
    assert not any(e["event"] == "split.applied" for e in events)


def test_split_ignores_non_line_targets():
    layer = VectorLayer()
    parcel = layer.add(Geometry.polygon(SQUARE))
    other = layer.add(Geometry.polygon([(1, 1), (2, 1), (2, 2), (1, 2)]))
    session = CDSPSession()

    session.split(parcel)

    assert session.choose([other]) == ()
    with pytest.raises(EmptyTargetsError):
        session.submit()


def test_starting_a_task_cancels_the_previous_one():
    layer, p1, p2, _ = _points_layer()
    road = layer.add(Geometry.line_string([(0, 3), (4, 3)]))
    session = CDSPSession()

    session.combine(p1)
    session.choose([p2])
    session.split(road)

    assert session.task is TaskKind.SPLIT
    assert session.chosen == ()
    assert p2.layer is layer

    session.cancel()
    assert not session.is_active
    assert len(layer) == 4


def test_entry_guards_reject_wrong_kinds():
    layer = VectorLayer()
    point = layer.add(Geometry.point((0, 0)))
    multi = layer.add(Geometry(GeometryKind.MULTI_POLYGON, [[SQUARE]]))
    polygon = layer.add(Geometry.polygon([(5, 5), (6, 5), (6, 6)]))
    session = CDSPSession()

    assert session.peel(point) is None
    assert session.peel(multi) is None
    assert session.split(point) is None
    assert session.split(multi) is None
    assert session.decompose(polygon) is None
    assert session.combine("not a geometry") is None
    assert isinstance(session.state, Idle)


def test_contract_violations():
    session = CDSPSession()

    with pytest.raises(SessionStateError):
        session.submit()
    with pytest.raises(SessionStateError):
        session.choose([])
    with pytest.raises(SessionStateError):
        session.peel(Geometry.polygon(SQUARE))

    layer = VectorLayer()
    parcel = layer.add(Geometry.polygon(SQUARE))
    session.peel(parcel)
    with pytest.raises(EmptyTargetsError):
        session.submit()
    assert isinstance(session.state, Idle)
    assert parcel.layer is layer

    assert issubclass(EmptyTargetsError, SessionStateError)


def test_idle_events_are_ignored():
    session = CDSPSession()

    assert session.pointer_move((0, 0)) is None
    assert session.click((0, 0)) == ()
    assert session.hit is None
    session.cancel()
    session.remove()
    assert session.task is None


def test_zoom_provider_is_used():
    session = CDSPSession(config=CDSPConfig(zoom=3, epsilon=1e-9), zoom_provider=lambda: 12)

    service = session.intersection_service()

    assert service.zoom == 12
    assert service.epsilon == 1e-9
    assert CDSPSession(config=CDSPConfig(zoom=3)).intersection_service().zoom == 3


def test_config_validation():
    print("\n" + "=" * 60)
    print("TEST: Session Config")
    print("=" * 60)

    config = CDSPConfig(hit_color="#FFA400", log_level="debug")
    assert config.hit_color == "#ffa400"
    assert config.log_level == "DEBUG"
    assert config.hit_sv_color.as_hex() == "#ffa400"

    with pytest.raises(ValueError):
        CDSPConfig(line_width=0)
    with pytest.raises(ValueError):
        CDSPConfig(hit_color="not-a-color")
    with pytest.raises(ValueError):
        CDSPConfig(zoom=40)
    with pytest.raises(ValueError):
        CDSPConfig(epsilon=-1)
    with pytest.raises(ValueError):
        CDSPConfig(identify_tolerance=-0.1)
    with pytest.raises(ValueError):
        CDSPConfig(log_level="LOUD")
    with pytest.raises(ValueError):
        CDSPConfig.from_dict({"zoom": 3, "colour": "#fff"})
    print("✓ invalid options rejected")


def test_config_from_yaml(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text(
        "hit_color: '#ff0000'\n"
        "zoom: 14\n"
        "multi_crossing_cuts: true\n"
    )

    config = CDSPConfig.from_yaml(path)

    assert config.hit_color == "#ff0000"
    assert config.zoom == 14
    assert config.multi_crossing_cuts is True
    assert config.choose_color == "#00bcd4"

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        CDSPConfig.from_yaml(bad)
