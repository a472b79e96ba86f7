#!/usr/bin/env python3
"""Replay a recorded sample stream through a claiming session.

Useful for reproducing field reports: the device exports its raw samples and
this tool shows exactly how the engine judged them.

Input format (JSON)::

    {"samples": [{"lat": 31.23, "lon": 121.47, "accuracy": 5.0,
                  "speed": 1.4, "timestamp": 1718000000.0}, ...]}

``speed`` may be omitted or negative when unknown. An optional territories
file holds rows shaped like the ``territories`` table
(``{"id", "user_id", "path": [{"lat", "lon"}, ...]}``).

Usage examples:

    python -m territory_claim.tools.replay_track --input walk.json --confirm

    python -m territory_claim.tools.replay_track \
        --input walk.json \
        --territories nearby.json \
        --player-id me \
        --confirm \
        --user-id 6f1c...
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from territory_claim.claim_payload import build_claim_payload
from territory_claim.diagnostics import DiagnosticLog, LoggingEventListener
from territory_claim.models import ClosureThresholds, Sample, ValidatedClaim
from territory_claim.tracking import ClaimSession, InMemoryTerritoryStore, OwnedTerritory

LOGGER = logging.getLogger("replay_track")


def _setup_logging(verbose: bool) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def load_samples(path: Path) -> List[Sample]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    rows = payload.get("samples") if isinstance(payload, dict) else payload
    if not isinstance(rows, list):
        raise ValueError(f"Expected a list of samples in {path}")
    samples = []
    for row in rows:
        speed = row.get("speed")
        samples.append(
            Sample.at(
                float(row["lat"]),
                float(row["lon"]),
                accuracy_m=float(row.get("accuracy", 5.0)),
                speed_mps=-1.0 if speed is None else float(speed),
                timestamp_s=float(row["timestamp"]),
            )
        )
    return samples


def load_territories(path: Path) -> List[OwnedTerritory]:
    with path.open("r", encoding="utf-8") as handle:
        rows = json.load(handle)
    if isinstance(rows, dict):
        rows = rows.get("territories", [])
    return [OwnedTerritory.from_record(row) for row in rows]


def replay_samples(
    samples: Iterable[Sample],
    *,
    thresholds: Optional[ClosureThresholds] = None,
    territories: Sequence[OwnedTerritory] = (),
    player_id: Optional[str] = None,
    confirm: bool = False,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Run ``samples`` through a fresh session and summarise the outcome.

    Sample timestamps double as the session clock so periodic collision
    checks fire exactly as they would have on the device.
    """

    samples = list(samples)
    oracle = InMemoryTerritoryStore(territories, player_id=player_id) if territories else None
    diagnostics = DiagnosticLog()
    clock_value = [samples[0].timestamp_s if samples else 0.0]
    session = ClaimSession(
        thresholds,
        oracle=oracle,
        listeners=[LoggingEventListener(LOGGER), diagnostics],
        clock=lambda: clock_value[0],
    )
    session.start_tracking(samples[0].point if samples else None)

    outcomes: Dict[str, int] = {}
    for sample in samples:
        if not session.is_tracking:
            break
        clock_value[0] = sample.timestamp_s
        outcome = session.ingest_sample(sample)
        outcomes[outcome.value] = outcomes.get(outcome.value, 0) + 1
        session.on_tick(sample.timestamp_s)

    summary: Dict[str, Any] = {"outcomes": outcomes}
    if confirm and session.is_tracking:
        result = session.confirm_closure()
        if isinstance(result, ValidatedClaim):
            summary["claim"] = {
                "area_m2": round(result.area_m2, 2),
                "length_m": round(result.length_m, 2),
                "point_count": result.point_count,
            }
            if user_id:
                summary["payload"] = build_claim_payload(result, user_id=user_id)
        else:
            summary["rejection"] = result.describe()

    # Read after confirmation so a validated claim reports as closed.
    status = session.status()
    summary.update(
        state=status.state.value,
        point_count=status.point_count,
        length_m=round(status.length_m, 2),
        area_m2=round(status.area_m2, 2),
        closeable=status.closeable,
        termination=status.termination.describe() if status.termination else None,
    )
    summary["log"] = [entry.display_text for entry in diagnostics.entries]
    return summary


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--input", required=True, type=Path, help="Sample JSON file")
    parser.add_argument("--territories", type=Path, help="Foreign territories JSON file")
    parser.add_argument("--player-id", help="Owner id whose territories are ignored")
    parser.add_argument("--confirm", action="store_true", help="Confirm closure at the end")
    parser.add_argument("--user-id", help="Include the upload payload for this user")
    parser.add_argument("--output-file", type=Path, help="Write the summary here")
    parser.add_argument("--verbose", action="store_true", help="Log every sample")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    samples = load_samples(args.input)
    territories = load_territories(args.territories) if args.territories else []
    LOGGER.info("Replaying %d samples against %d territories", len(samples), len(territories))
    summary = replay_samples(
        samples,
        territories=territories,
        player_id=args.player_id,
        confirm=args.confirm,
        user_id=args.user_id,
    )
    text = json.dumps(summary, indent=2)
    if args.output_file:
        args.output_file.write_text(text + "\n", encoding="utf-8")
        LOGGER.info("Summary written to %s", args.output_file)
    else:
        print(text)
    return 1 if summary["termination"] else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
