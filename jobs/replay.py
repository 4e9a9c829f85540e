"""CLI: run recorded telemetry pushes through the aggregation engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rig_stats.engine import FarmStatsEngine
from stats_api.schemas import PushValidationError, parse_push

logger = logging.getLogger(__name__)


def _load_pushes(path: Path) -> List[dict]:
    """A file holds either one push object or a list of pushes."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, list):
        return raw
    return [raw]


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Replay telemetry pushes and print rig stats snapshots")
    p.add_argument("push_file", type=Path, help="JSON file with one push or a list of pushes")
    p.add_argument("--now-ms", type=int, default=None, help="wall-clock time in epoch millis (default: now)")
    p.add_argument("--indent", type=int, default=None)
    p.add_argument("--last-only", action="store_true", help="print only the final snapshot")
    args = p.parse_args(argv)

    engine = FarmStatsEngine()
    pushes = _load_pushes(args.push_file)
    logger.info("Replaying %d push(es) from %s", len(pushes), args.push_file)

    snapshots = []
    for i, raw in enumerate(pushes):
        try:
            push = parse_push(raw)
        except PushValidationError as e:
            logger.error("Push #%d rejected: %s", i, e)
            return 1
        snapshots.append(engine.process(push, now_ms=args.now_ms).to_dict())

    output = snapshots[-1:] if args.last_only else snapshots
    for snapshot in output:
        sys.stdout.write(json.dumps(snapshot, indent=args.indent) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
