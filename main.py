#!/usr/bin/env python3
"""
main.py - Orchestrator for the leaf gas-exchange simulator

Usage examples:
    python main.py evaluate --velocity 5 --thickness 0.4
    python main.py preset MICRO_UG
    python main.py sweep --param air_velocity --start 0 --stop 5 --n 26 --plot
    python main.py session --script session.yaml --plot

This script expects to be run from the project root.
"""
import argparse
import sys
import logging
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd
import yaml

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from config import load_config, initial_state_from_config
from sim.controls import StateCell
from sim.leaf_physics import evaluate
from sim.leaf_state import GravityMode, LightColor
from sim.leaf_visual import LeafVisualModel
from sim.sensors import FluxSensor
from sim.telemetry import build_report
from viz.plot_utils import plot_flux_history, plot_sweep

logger = logging.getLogger(__name__)

SWEEP_PARAMS = (
    'air_velocity',
    'ambient_co2',
    'light_intensity',
    'ambient_temperature',
    'boundary_layer_thickness',
    'gravity_factor',
)


def run_sweep(cell, param, values):
    """
    Evaluate one snapshot per value of `param`, all from the same base inputs.

    The starting base thickness is passed with every point so a point never
    inherits the thinning of the one before it; rows depend only on their value.
    """
    if param not in SWEEP_PARAMS:
        raise ValueError(f"Unsupported sweep parameter: {param}")
    base = cell.get().base_thickness
    rows = []
    for v in values:
        overrides = {'boundary_layer_thickness': base, param: float(v)}
        state = cell.update(**overrides)
        rows.append(state.to_dict())
    df = pd.DataFrame(rows)
    # the thickness column holds the derived value, keep the swept base alongside it
    if param == 'boundary_layer_thickness':
        df.insert(0, 'base_thickness_input', [float(v) for v in values])
    return df


def load_session_script(path):
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Session script not found: {p}")
    with open(p, 'r') as f:
        script = yaml.safe_load(f) or []
    if isinstance(script, dict):
        script = script.get('events', [])
    return script


def run_session(cell, events, sensor, visual, frame_rate=60):
    """
    Replay control events against `cell`.

    Events: {'set': {...}} applies slider overrides, {'preset': MODE} switches
    gravity preset, {'wait': seconds} advances time, sampling the flux sensor at
    its interval and stepping the visual model once per frame.
    Returns one record per event.
    """
    t = 0.0
    next_sample = sensor.interval_s
    dt = 1.0 / frame_rate
    records = []

    for i, event in enumerate(events):
        if not isinstance(event, dict) or len(event) != 1:
            raise ValueError(f"Malformed session event #{i}: {event!r}")
        action, arg = next(iter(event.items()))

        if action == 'set':
            if not isinstance(arg, dict):
                raise ValueError(f"Malformed session event #{i}: 'set' needs a mapping, got {arg!r}")
            state = cell.update(**arg)
            logger.info(f"[session] t={t:.2f}s set {arg}")
        elif action == 'preset':
            state = cell.select_preset(arg)
            logger.info(f"[session] t={t:.2f}s preset {state.gravity_mode.value}")
        elif action == 'wait':
            n_frames = int(round(float(arg) * frame_rate))
            state = cell.get()
            for _ in range(n_frames):
                t += dt
                visual.step(state)
                if t + 1e-9 >= next_sample:
                    point = sensor.sample(state, t)
                    logger.debug(f"[sensor] t={t:.2f}s CO2={point['co2']:.2f} O2={point['o2']:.2f}")
                    next_sample += sensor.interval_s
        else:
            raise ValueError(f"Unknown session action: {action!r}")

        report = build_report(state)
        for line in report.lines():
            logger.info(f"[telemetry] {line}")
        record = {'t': t, 'event': action}
        record.update(state.to_dict())
        record.update({f'visual_{k}': v for k, v in visual.uniforms().items()})
        records.append(record)

    return records


def _setup_logging(log_dir, name):
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"{name}_{timestamp}.log"
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s | %(levelname)s | %(message)s',
        handlers=[
            logging.FileHandler(log_file, mode='w'),
            logging.StreamHandler()  # Also print to console
        ]
    )
    return log_file


def _light_aware(cfg):
    return (cfg.get('physics') or {}).get('light_aware', True)


def _print_state(state):
    for key, value in state.to_dict().items():
        if isinstance(value, float):
            print(f"  {key:<28} {value:10.4f}")
        else:
            print(f"  {key:<28} {value}")


def evaluate_cmd(args, cfg):
    light_aware = _light_aware(cfg) and not args.no_light
    derived = evaluate(args.gravity, args.velocity, args.thickness, args.co2, args.o2,
                       args.temp, args.light, LightColor.lookup(args.color),
                       light_aware=light_aware)
    print("[main] Derived state:")
    for key, value in derived.to_dict().items():
        print(f"  {key:<28} {value:10.4f}")
    return 0


def preset_cmd(args, cfg):
    cell = StateCell(initial_state_from_config(cfg),
                     light_aware=_light_aware(cfg))
    state = cell.select_preset(args.mode)
    print(f"[main] Preset {state.gravity_mode.value}:")
    _print_state(state)
    for line in build_report(state).lines():
        print(f"  {line}")
    return 0


def sweep_cmd(args, cfg):
    cell = StateCell(initial_state_from_config(cfg),
                     light_aware=_light_aware(cfg))
    if args.mode:
        cell.select_preset(args.mode)
    values = np.linspace(args.start, args.stop, args.n)
    df = run_sweep(cell, args.param, values)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = out_dir / f"sweep_{args.param}.csv"
    df.to_csv(csv_path, index=False)
    print(f"[main] Sweep of {args.param} over {args.n} points saved to {csv_path}")
    if args.plot:
        plot_sweep(df, 'base_thickness_input' if args.param == 'boundary_layer_thickness' else args.param,
                   out_path=str(out_dir / f"sweep_{args.param}.png"))
    return 0


def session_cmd(args, cfg):
    out_cfg = cfg.get('output') or {}
    log_file = _setup_logging(out_cfg.get('log_dir', 'logs'), 'session')
    logger.info("=" * 80)
    logger.info("SESSION STARTED")
    logger.info(f"Script: {args.script}")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    events = load_session_script(args.script)
    cell = StateCell(initial_state_from_config(cfg),
                     light_aware=_light_aware(cfg))
    sensor = FluxSensor(cfg.get('sensor'))
    visual = LeafVisualModel(cfg.get('visual'))
    frame_rate = (cfg.get('visual') or {}).get('frame_rate', 60)

    records = run_session(cell, events, sensor, visual, frame_rate=frame_rate)
    logger.info(f"[main] Session finished: {len(records)} events, {len(sensor.history)} samples in history")

    plot_dir = Path(out_cfg.get('plot_dir', 'plots'))
    plot_dir.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(records).to_csv(plot_dir / 'session_states.csv', index=False)
    if args.plot:
        plot_flux_history(sensor.series(), out_path=str(plot_dir / 'session_flux.png'),
                          title='Gas exchange rates')
    return 0


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Leaf gas-exchange simulator - main orchestrator")
    p.add_argument("--config", type=str, default=None, help="path to YAML config")
    sub = p.add_subparsers(dest="cmd")

    e = sub.add_parser("evaluate", help="Evaluate the physics for one input tuple")
    e.add_argument("--gravity", type=float, default=1.0, help="gravity factor (0..1)")
    e.add_argument("--velocity", type=float, default=0.0, help="forced air velocity (m/s)")
    e.add_argument("--thickness", type=float, default=0.4, help="base boundary layer thickness (mm)")
    e.add_argument("--co2", type=float, default=400.0, help="ambient CO2 (ppm)")
    e.add_argument("--o2", type=float, default=21.0, help="ambient O2 (%%)")
    e.add_argument("--temp", type=float, default=22.0, help="ambient temperature (C)")
    e.add_argument("--light", type=float, default=0.0, help="light intensity multiplier (0..5)")
    e.add_argument("--color", type=str, default="White", help="light colour (White, Red, Blue, Green, Far-Red)")
    e.add_argument("--no-light", dest="no_light", action='store_true', help="Use the light-less model")

    pr = sub.add_parser("preset", help="Resolve a gravity preset from the initial snapshot")
    pr.add_argument("mode", type=str, choices=[m.value for m in GravityMode])

    s = sub.add_parser("sweep", help="Sweep one control input and export the derived states")
    s.add_argument("--param", type=str, default="air_velocity", choices=SWEEP_PARAMS)
    s.add_argument("--start", type=float, default=0.0)
    s.add_argument("--stop", type=float, default=5.0)
    s.add_argument("--n", type=int, default=26, help="number of points")
    s.add_argument("--mode", type=str, default=None, choices=[m.value for m in GravityMode],
                   help="apply a gravity preset before sweeping")
    s.add_argument("--out_dir", type=str, default="sweep_output", help="output directory")
    s.add_argument("--plot", action='store_true', help="save a sweep plot")

    ss = sub.add_parser("session", help="Replay a YAML script of control events")
    ss.add_argument("--script", type=str, required=True, help="path to session YAML")
    ss.add_argument("--plot", action='store_true', help="save the flux chart")

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if not args.cmd:
        print("No command given. Use -h to see options.")
        return 1
    try:
        cfg = load_config(args.config)
        if args.cmd == "evaluate":
            return evaluate_cmd(args, cfg)
        elif args.cmd == "preset":
            return preset_cmd(args, cfg)
        elif args.cmd == "sweep":
            return sweep_cmd(args, cfg)
        elif args.cmd == "session":
            return session_cmd(args, cfg)
    except (FileNotFoundError, KeyError, ValueError) as e:
        print(f"[main] Error: {e}")
        return 2
    print("Unknown command:", args.cmd)
    return 1


if __name__ == "__main__":
    sys.exit(main())
