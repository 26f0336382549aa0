"""
CDSP CLI - Main entry point.

Runs one combine / decompose / peel / split task over a YAML scene file and
prints the resulting layer.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from cdsp_geometry.layer import VectorLayer
from cdsp_geometry.projection import get_projection
from cdsp_geometry.shapes import Geometry
from cdsp_logging import LogEvent, create_logger
from cdsp_session import CDSPConfig, CDSPSession, SessionStateError, TaskResult


def load_yaml_scene(scene_path: str, tolerance: float = 0.0) -> Dict[str, Any]:
    """
    Load a scene file.

    Example YAML:
        projection: planar      # or web_mercator
        zoom: 0
        geometries:
          - id: parcel
            type: Polygon
            coordinates: [[[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]]]
            properties: {owner: "A"}
          - id: cut
            type: LineString
            coordinates: [[2, -1], [2, 5]]

    Returns:
        Dict with keys: layer (VectorLayer), projection, zoom

    Raises:
        FileNotFoundError: If scene file doesn't exist
        ValueError: If YAML or geometries are invalid
    """
    path = Path(scene_path)

    if not path.exists():
        raise FileNotFoundError(f"Scene file not found: {scene_path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {scene_path}: {e}")

    layer = VectorLayer(path.stem, tolerance=tolerance)
    for item in data.get("geometries", []):
        layer.add(Geometry.from_dict(item))

    return {
        "layer": layer,
        "projection": get_projection(data.get("projection", "planar")),
        "zoom": data.get("zoom"),
    }


def _lookup(layer: VectorLayer, geometry_ids: Sequence[str]) -> List[Geometry]:
    geometries = []
    for geometry_id in geometry_ids:
        geometry = layer.get_geometry_by_id(geometry_id)
        if geometry is None:
            raise ValueError(f"Geometry '{geometry_id}' not found in scene")
        geometries.append(geometry)
    return geometries


def run_task(
    command: str,
    scene: Dict[str, Any],
    source_id: str,
    target_ids: Sequence[str] = (),
    deselect: Sequence[int] = (),
    config: Optional[CDSPConfig] = None,
) -> TaskResult:
    """
    Run one task over a loaded scene.

    Args:
        command: combine, decompose, peel or split
        scene: Output of load_yaml_scene (its layer is modified in place)
        source_id: ID of the geometry the task starts on
        target_ids: IDs to choose (combine/peel/split)
        deselect: Part indices to deselect (decompose)
        config: Session configuration

    Raises:
        ValueError: If IDs are unknown or the source kind doesn't fit
        SessionStateError: On contract violations (e.g. no targets)
    """
    config = config or CDSPConfig()
    zoom = scene["zoom"] if scene["zoom"] is not None else config.zoom
    session = CDSPSession(
        config=config,
        projection=scene["projection"],
        zoom_provider=lambda: zoom,
    )

    layer = scene["layer"]
    [source] = _lookup(layer, [source_id])
    targets = _lookup(layer, target_ids)

    started = getattr(session, command)(source)
    if started is None:
        raise ValueError(f"Cannot {command} a {source.kind.value}")

    if command == "decompose":
        children = session.children
        for index in deselect:
            if not 0 <= index < len(children):
                raise ValueError(f"Part index {index} out of range (0..{len(children) - 1})")
        session.choose([children[i] for i in deselect])
    else:
        session.choose(targets)

    return session.submit()


def _as_dicts(result) -> List[Dict[str, Any]]:
    if result is None:
        return []
    if isinstance(result, Geometry):
        return [result.to_dict()]
    return [geometry.to_dict() for geometry in result]


def format_report(outcome: TaskResult, layer: VectorLayer) -> Dict[str, Any]:
    """Serializable summary of a committed task."""
    return {
        "task": outcome.task.value,
        "result": _as_dicts(outcome.result),
        "deals": _as_dicts(outcome.deals),
        "geometries": _as_dicts(layer.get_geometries()),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="CDSP CLI - Combine, decompose, peel or split scene geometries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Split a parcel with two cutting lines
  cdsp-cli split scene.yaml --source parcel --targets cut_a cut_b

  # Punch a courtyard hole into a building footprint
  cdsp-cli peel scene.yaml --source building --targets courtyard

  # Merge points into a MultiPoint
  cdsp-cli combine scene.yaml --source p1 --targets p2 p3

  # Explode a MultiPolygon, releasing parts 0 and 2 as standalone polygons
  cdsp-cli decompose scene.yaml --source islands --deselect 0 2
"""
    )

    parser.add_argument(
        "--config",
        help="Session config YAML (default: built-in defaults)"
    )
    parser.add_argument(
        "--output",
        help="Write the report to this file instead of stdout"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available tasks')

    for name, help_text in [
        ('combine', 'Merge geometries into a multi-geometry'),
        ('peel', 'Punch target polygons as holes into a polygon'),
        ('split', 'Split a polygon or line with cutting lines'),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('scene', help='Path to scene YAML')
        sub.add_argument('--source', required=True, help='Source geometry ID')
        sub.add_argument('--targets', nargs='*', default=[], help='Target geometry IDs')

    decompose = subparsers.add_parser('decompose', help='Explode a multi-geometry')
    decompose.add_argument('scene', help='Path to scene YAML')
    decompose.add_argument('--source', required=True, help='Multi-geometry ID')
    decompose.add_argument(
        '--deselect', nargs='*', type=int, default=[],
        help='Part indices released as standalone geometries'
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logger = create_logger("cli")
    try:
        config = CDSPConfig.from_yaml(Path(args.config)) if args.config else CDSPConfig()
        if args.config:
            logger.info(
                event=LogEvent.CONFIG_LOADED,
                message=f"Loaded config from {args.config}",
            )
        scene = load_yaml_scene(args.scene, tolerance=config.identify_tolerance)
        outcome = run_task(
            args.command,
            scene,
            args.source,
            target_ids=getattr(args, 'targets', []),
            deselect=getattr(args, 'deselect', []),
            config=config,
        )
        report = yaml.safe_dump(format_report(outcome, scene["layer"]), sort_keys=False)

        if args.output:
            Path(args.output).write_text(report)
        else:
            print(report, end="")

    except (FileNotFoundError, ValueError, SessionStateError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
