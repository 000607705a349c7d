#!/usr/bin/env python3
"""
===============================================================================
QUATERNION CALCULATOR - MAIN ENTRY POINT
===============================================================================
Command-line front end for the quaternion calculator.

USAGE:
    python main.py --a 1,2,3,4 --b 0.5,0,0,0.5 --op multiply
    python main.py --a 1,0,0,0 --b 0,0,0,1 --slerp 0.25
    python main.py --axis 0,0,1 --angle 90 --matrix
    python main.py --script session.yaml

Operands take 3 or 4 comma-separated numbers; three numbers are the
imaginary part (i, j, k) with w = 1.

A script is a YAML list of actions replayed through the calculator store:

    - {type: Q1, payload: {w: 1, i: 2, j: 3, k: 4}}
    - {type: Q2, payload: {w: 0, i: 1, j: 0, k: 0}}
    - {type: OP, payload: multiply}
    - {type: MADD, payload: Q_1}

DEPENDENCIES:
    numpy, pyyaml
    Install: pip install numpy pyyaml

===============================================================================
"""

import sys
import argparse
import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

# ---------------------------------------------------------------------------
# Path setup: ensure all project modules are importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from calculator.actions import Action, ActionType, Operation, Q1, Q2
from calculator.session import QuaternionCalculator
from core.quaternion import Quaternion

logger = logging.getLogger('QUATERNION_CALC')

CONFIG_RELATIVE_PATH = Path('config') / 'calculator_config.yaml'

SOURCE_CONFIG_PATH = PROJECT_ROOT.parent.parent / CONFIG_RELATIVE_PATH

DEFAULT_CONFIG: Dict[str, Any] = {
    'calculator': {'name': 'Quaternion Calculator'},
    'display': {'precision': 6},
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_config_paths() -> List[Path]:
    """
    Config locations searched when no --config is given, in order.

    The source-tree entry only exists in a checkout; an installed console
    script finds its config under the working directory.
    """
    return [Path.cwd() / CONFIG_RELATIVE_PATH, SOURCE_CONFIG_PATH]


def load_config(config_path: Optional[str] = None) -> dict:
    """
    Load calculator configuration from YAML.

    Args:
        config_path: Path to a YAML config. Defaults to the first existing
            config/calculator_config.yaml under the working directory or the
            source checkout; with neither present the built-in defaults
            are used.

    Returns:
        Configuration dictionary with built-in defaults filled in.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
    """
    if config_path is None:
        path = next((p for p in default_config_paths() if p.exists()), None)
        if path is None:
            logger.debug("No config file found, using built-in defaults")
            return copy.deepcopy(DEFAULT_CONFIG)
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    return _merge(DEFAULT_CONFIG, loaded)


def setup_logging(config: dict, verbose: bool = False) -> None:
    """Configure root logging from the 'logging' config section."""
    log_cfg = config['logging']
    level = logging.DEBUG if verbose else getattr(logging, str(log_cfg['level']).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=log_cfg['format'],
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _parse_numbers(text: str) -> List[float]:
    parts = [p for p in text.replace(' ', '').split(',') if p]
    try:
        return [float(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a list of numbers: {text!r}") from None


def parse_components(text: str) -> List[float]:
    """
    argparse type for operands: '1,2,3' or '1,2,3,4'.

    Raises:
        argparse.ArgumentTypeError: On wrong count or non-numeric entries.
    """
    values = _parse_numbers(text)
    if len(values) not in (3, 4):
        raise argparse.ArgumentTypeError(f"expected 3 or 4 numbers, got {len(values)}")
    return values


def parse_axis(text: str) -> List[float]:
    """argparse type for a 3-component rotation axis."""
    values = _parse_numbers(text)
    if len(values) != 3:
        raise argparse.ArgumentTypeError(f"axis must have 3 numbers, got {len(values)}")
    return values


def quaternion_from(values: Optional[Sequence[float]]) -> Quaternion:
    q = Quaternion()
    q.from_array(values)
    return q


def format_quaternion(values: Dict[str, float], precision: int) -> str:
    q = Quaternion()
    q.from_object(values)
    return q.to_string(precision)


def load_script(path: str) -> List[Action]:
    """
    Read a YAML action script.

    Each entry needs a 'type' (an ActionType value or name, e.g. 'Q1' or
    'Q1_CHANGE') and an optional 'payload'. OP payloads may name the
    operation ('multiply').

    Raises:
        ValueError: On a malformed script.
    """
    with open(path, 'r') as f:
        entries = yaml.safe_load(f) or []

    if not isinstance(entries, list):
        raise ValueError(f"Script {path} must be a list of actions")

    actions = []
    for n, entry in enumerate(entries):
        if not isinstance(entry, dict) or 'type' not in entry:
            raise ValueError(f"Script entry {n} has no 'type': {entry!r}")
        raw = str(entry['type'])
        try:
            kind = ActionType(raw)
        except ValueError:
            try:
                kind = ActionType[raw.upper()]
            except KeyError:
                raise ValueError(f"Script entry {n}: unknown action type {raw!r}") from None
        payload = entry.get('payload')
        if kind is ActionType.OP_CHANGE:
            payload = Operation.parse(payload)
        actions.append(Action(kind, payload))
    return actions


def run_script(calc: QuaternionCalculator, actions: List[Action], precision: int) -> None:
    for action in actions:
        calc.store.dispatch(action)
        print(f"{action.type.value:<6} {calc.result_title:<18} "
              f"{format_quaternion(calc.result, precision)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Quaternion calculator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --a 1,2,3,4 --b 0.5,0,0,0.5 --op multiply
  python main.py --a 1,0,0,0 --b 0,0,0,1 --nlerp 0.5
  python main.py --axis 0,0,1 --angle 90 --matrix
  python main.py --script session.yaml
        """
    )

    parser.add_argument('--config', type=str, default=None,
                        help='Path to calculator config YAML')
    parser.add_argument('--a', type=parse_components, default=None,
                        help='Quaternion A as w,i,j,k (or i,j,k)')
    parser.add_argument('--b', type=parse_components, default=None,
                        help='Quaternion B as w,i,j,k (or i,j,k)')
    parser.add_argument('--op', type=str.lower, default=None,
                        choices=['add', 'subtract', 'multiply', 'divide'],
                        help='Operation applied as A (op) B')
    parser.add_argument('--slerp', type=float, default=None, metavar='T',
                        help='Spherical interpolation from A towards B')
    parser.add_argument('--nlerp', type=float, default=None, metavar='T',
                        help='Normalized linear interpolation from A towards B')
    parser.add_argument('--axis', type=parse_axis, default=None,
                        help='Build A as a rotation about this axis')
    parser.add_argument('--angle', type=float, default=0.0,
                        help='Rotation angle in degrees for --axis')
    parser.add_argument('--matrix', action='store_true',
                        help='Print the rotation matrix of A')
    parser.add_argument('--script', type=str, default=None,
                        help='Replay a YAML list of calculator actions')
    parser.add_argument('--precision', type=int, default=None,
                        help='Digits after the decimal point')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point. Parses command line arguments and runs the requested
    calculation(s).

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        parser.error(str(e))

    setup_logging(config, verbose=args.verbose)
    precision = args.precision if args.precision is not None else int(config['display']['precision'])

    if args.script:
        try:
            actions = load_script(args.script)
        except (OSError, ValueError, yaml.YAMLError) as e:
            parser.error(str(e))
        logger.info(f"Replaying {len(actions)} actions from {args.script}")
        run_script(QuaternionCalculator(), actions, precision)
        return 0

    if args.axis is not None:
        a = Quaternion()
        a.from_axis_rotation(args.axis, args.angle)
    else:
        a = quaternion_from(args.a)
    b = quaternion_from(args.b)

    print(f"A = {a.to_string(precision)}")
    if args.b is not None:
        print(f"B = {b.to_string(precision)}")

    if args.op:
        calc = QuaternionCalculator()
        calc.set_operand(Q1, a)
        calc.set_operand(Q2, b)
        calc.select_operation(args.op)
        print(f"{calc.result_title} = {format_quaternion(calc.result, precision)}")

    if args.slerp is not None:
        print(f"slerp(A, B, {args.slerp}) = {a.slerp(b, args.slerp).to_string(precision)}")

    if args.nlerp is not None:
        print(f"nlerp(A, B, {args.nlerp}) = {a.nlerp(b, args.nlerp).to_string(precision)}")

    if args.matrix:
        m = a.to_rotation_matrix()
        if not m:
            logger.warning("A is a zero quaternion; it has no rotation matrix")
        for row in m:
            print('  '.join(f"{v:+.{precision}f}" for v in row))

    return 0


if __name__ == '__main__':
    sys.exit(main())
