"""
Fishbone Diagram Exporter
=========================

Render a stored diagram to SVG and/or PNG without going through the API.

Usage:
    python scripts/export_diagram.py --list
    python scripts/export_diagram.py <diagram-id>
    python scripts/export_diagram.py <diagram-id> --format png --theme dark
    python scripts/export_diagram.py <diagram-id> --expand-all --output-dir out/

Output:
    data/exports/<diagram-id>.svg
    data/exports/<diagram-id>.png
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fishbone.database.store import DiagramStore, JsonRecordStore  # noqa: E402
from fishbone.diagram.mutator import count_bones, walk  # noqa: E402
from fishbone.errors import FishboneError  # noqa: E402
from fishbone.reporting.export import EXPORT_FORMATS, export_diagram  # noqa: E402

DEFAULT_DB = PROJECT_ROOT / 'data' / 'db.json'
OUTPUT_DIR = PROJECT_ROOT / 'data' / 'exports'


def _all_parent_paths(diagram) -> List[str]:
    """Every path that has children, so nothing is cut off."""
    return [path for path, bone, _ in walk(diagram.roots) if bone.children]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Export a fishbone diagram to SVG or PNG.'
    )
    parser.add_argument('diagram_id', nargs='?', help='Id of the diagram to export')
    parser.add_argument(
        '--db', type=Path, default=DEFAULT_DB,
        help=f'Diagram store file (default: {DEFAULT_DB})',
    )
    parser.add_argument(
        '--format', choices=['all'] + list(EXPORT_FORMATS), default='all',
        help='Output format (default: all)',
    )
    parser.add_argument(
        '--output-dir', type=Path, default=OUTPUT_DIR,
        help=f'Output directory (default: {OUTPUT_DIR})',
    )
    parser.add_argument('--width', type=float, default=1200)
    parser.add_argument('--height', type=float, default=700)
    parser.add_argument('--theme', choices=['light', 'dark'], default='light')
    parser.add_argument(
        '--expand-all', action='store_true',
        help='Draw every cause instead of cutting off long lists',
    )
    parser.add_argument('--list', action='store_true', help='List stored diagrams and exit')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        store = DiagramStore(JsonRecordStore(args.db, 'diagrams'))
    except FishboneError as e:
        print(f'[ERROR] {e}')
        return 1

    if args.list:
        for diagram in store.all():
            print(f'  {diagram.id}  {diagram.name:40s} {count_bones(diagram.roots):4d} bones')
        return 0

    if not args.diagram_id:
        print('[ERROR] A diagram id is required (use --list to see them)')
        return 2

    diagram = store.get(args.diagram_id)
    if diagram is None:
        print(f'[ERROR] Diagram with ID {args.diagram_id} not found')
        return 1

    expanded = _all_parent_paths(diagram) if args.expand_all else None
    formats = EXPORT_FORMATS if args.format == 'all' else (args.format,)

    args.output_dir.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        data = export_diagram(diagram, fmt=fmt, width=args.width, height=args.height,
                              theme=args.theme, expanded=expanded)
        out_path = args.output_dir / f'{diagram.id}.{fmt}'
        out_path.write_bytes(data)
        print(f'  [OK] {fmt.upper():4s} {out_path} ({len(data)} bytes)')

    return 0


if __name__ == '__main__':
    sys.exit(main())
