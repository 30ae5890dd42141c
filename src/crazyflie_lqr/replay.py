#!/usr/bin/env python3
"""
Replay Script for the Crazyflie LQR Controller

Feeds a recorded sequence of state measurements through the controller and
writes the resulting commands:
- Load configuration and gain tables
- Optionally set a reference state before replaying
- Compute one command per recorded state
- Optionally pass commands through the in-flight gate / cmd_vel conversion
- Save commands (and twists) to JSON

Input formats:
    JSON: a list of 12-element lists, a list of state dictionaries, or
          {"reference": [...], "states": [...]}
    CSV:  12 numeric columns per row, optional header row

Usage:
    python -m crazyflie_lqr.replay --states flight.csv
    python -m crazyflie_lqr.replay --config config/crazyflie_lqr.yaml \\
        --states flight.json --reference 0 0 1 0 0 0 0 0 0 0 0 0 --in-flight
"""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path

import numpy as np

from crazyflie_lqr.controllers import CmdVelConverter, State, to_state
from crazyflie_lqr.errors import CrazyflieLQRError
from crazyflie_lqr.node import CrazyflieLQRNode
from crazyflie_lqr.utils import _json_serializer, load_config

logger = logging.getLogger(__name__)


def load_states(path: str | Path) -> tuple[list[State], State | None]:
    """
    Load recorded states (and an optional reference) from JSON or CSV.

    Args:
        path: Input file path.

    Returns:
        Tuple of (states, reference or None).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the format is unsupported or the content is malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"State file not found: {path}")

    reference = None

    if path.suffix == ".json":
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Malformed state file: {path}") from e

        if isinstance(data, dict):
            if data.get("reference") is not None:
                reference = to_state(data["reference"])
            data = data.get("states", [])
        if not isinstance(data, list):
            raise ValueError(f"State file must contain a list of states: {path}")
        states = [to_state(item) for item in data]

    elif path.suffix == ".csv":
        states = []
        first_row = True
        with open(path, newline="") as f:
            for i, row in enumerate(csv.reader(f)):
                if not row or row[0].lstrip().startswith("#"):
                    continue
                is_first, first_row = first_row, False
                try:
                    values = [float(v) for v in row]
                except ValueError:
                    if is_first:
                        continue  # header
                    raise ValueError(f"Non-numeric row {i + 1} in {path}") from None
                states.append(State(values))
    else:
        raise ValueError(f"Unsupported state file format: {path.suffix}")

    return states, reference


def replay(
    node: CrazyflieLQRNode,
    states: list[State],
    converter: CmdVelConverter | None = None,
) -> list[dict]:
    """
    Run every state through the node.

    Args:
        node: Initialized node.
        states: Recorded measurements.
        converter: Optional gate; when given each record carries its twist.

    Returns:
        One record per state with the command (and twist).
    """
    records = []
    for step, state in enumerate(states):
        command = node.state_callback(state)
        record = {"step": step, "command": command.to_dict()}
        if converter is not None:
            record["twist"] = converter.convert(command).to_dict()
        records.append(record)
    return records


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Replay recorded states through the Crazyflie LQR controller",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML/JSON configuration file",
    )
    parser.add_argument(
        "--states",
        type=str,
        required=True,
        help="Recorded states (.json or .csv)",
    )
    parser.add_argument(
        "--reference",
        type=float,
        nargs=12,
        default=None,
        metavar="V",
        help="Reference state (12 values); overrides any reference in the file",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="replay_commands.json",
        help="Output JSON file for the computed commands",
    )
    parser.add_argument(
        "--in-flight",
        action="store_true",
        help="Also emit gated cmd_vel twists with the gate open",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (overrides configuration)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        logging.basicConfig(level=logging.INFO)
        logger.error("Failed to load configuration: %s", e)
        return 1

    level = args.log_level or config.get("logging", {}).get("level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    node = CrazyflieLQRNode()
    if not node.initialize(config):
        logger.error("Refusing to start with invalid configuration.")
        return 1

    try:
        states, reference = load_states(args.states)
        if args.reference is not None:
            reference = State(args.reference)
        if reference is not None:
            node.reference_callback(reference)

        converter = None
        if args.in_flight:
            converter = CmdVelConverter(config.get("cmd_vel", {}))
            converter.takeoff()

        records = replay(node, states, converter)
    except (FileNotFoundError, ValueError, CrazyflieLQRError) as e:
        logger.error("Replay failed: %s", e)
        return 1

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(records, f, indent=2, default=_json_serializer)
    logger.info("Saved %d commands: %s", len(records), output_path)

    if node.data_logger is not None:
        log_path = node.data_logger.save()
        logger.info("Saved step log: %s", log_path)

    if records:
        thrust = np.array([r["command"]["thrust"] for r in records])
        logger.info(
            "Thrust command: mean %.3f, min %.3f, max %.3f",
            thrust.mean(), thrust.min(), thrust.max(),
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
