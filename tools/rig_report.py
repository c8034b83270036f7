"""Print what a retargeting config compiles to and how blendshape names classify.

Usage::

    python -m tools.rig_report --config assets/config/rules/example_v1.json
    python -m tools.rig_report --names names.txt --eval jawOpen=0.5 mouthSmile_L=1
    python -m tools.rig_report --config rules.json --dense --eval jawDrop=0.5
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, "src")
sys.path.insert(0, ".")

import numpy as np

from facedrive.core.config_loader import load_text
from facedrive.core.matrix import format_matrix
from facedrive.retarget.retargeter import Retargeter
from facedrive.rig.naming import classify
from facedrive.rig.rig_logic import RigLogic


def _parse_assignments(pairs: list[str]) -> dict[str, float]:
    values = {}
    for pair in pairs:
        name, _, value = pair.partition("=")
        values[name] = float(value)
    return values


def report_config(path: Path, dense: bool, values: dict[str, float]) -> None:
    retargeter = Retargeter.from_file(path, use_sparse_deltas=not dense)

    print(f"\n{'='*70}")
    print(f"RULE CONFIG: {path}")
    print(f"{'='*70}\n")
    print(f"  rules:   {len(retargeter.rules)}")
    print(f"  inputs:  {', '.join(retargeter.input_signals)}")
    print(f"  outputs: {', '.join(retargeter.output_signals)}")
    print("\n  deltas (rules x outputs):")
    for line in format_matrix(retargeter.deltas).splitlines():
        print(f"    {line}")

    if values:
        signals = np.zeros(len(retargeter.input_signals))
        for i, name in enumerate(retargeter.input_signals):
            signals[i] = values.get(name, 0.0)
        outputs = np.zeros(len(retargeter.output_signals))
        retargeter.eval(signals, outputs)
        print("\n  evaluated:")
        for name, value in zip(retargeter.output_signals, outputs):
            print(f"    {name:30s} {value:.3f}")


def report_names(path: Path, values: dict[str, float]) -> None:
    names = [line.strip() for line in load_text(path).splitlines() if line.strip()]

    print(f"\n{'='*70}")
    print(f"BLENDSHAPE NAMES: {path}")
    print(f"{'='*70}\n")
    for name in names:
        result = classify(name)
        kind = result[0].name.lower() if result is not None else "UNCLASSIFIED"
        print(f"  {name:40s} {kind}")

    rig = RigLogic(names)
    print(f"\n  drivers: {len(rig.drivers)}  outputs handled: {rig.output_signals_count}/{len(names)}")

    if values:
        driver_weights = np.array([values.get(d, 0.0) for d in rig.drivers])
        outputs = np.zeros(len(names))
        rig.eval(driver_weights, outputs)
        print("\n  evaluated:")
        for name, value in zip(names, outputs):
            print(f"    {name:40s} {value:.3f}")


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Retargeting config and rig naming report")
    parser.add_argument("--config", type=Path, default=None,
                        help="V1/V2 rule config JSON")
    parser.add_argument("--names", type=Path, default=None,
                        help="Text file with one blendshape name per line")
    parser.add_argument("--dense", action="store_true",
                        help="Keep the deltas matrix dense")
    parser.add_argument("--eval", nargs="*", default=[],
                        help="name=value assignments to evaluate")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.config is None and args.names is None:
        parser.error("nothing to report: pass --config and/or --names")

    values = _parse_assignments(args.eval)
    if args.config is not None:
        report_config(args.config, args.dense, values)
    if args.names is not None:
        report_names(args.names, values)


if __name__ == "__main__":
    main()
