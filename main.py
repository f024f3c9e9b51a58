# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # make config.py importable when run as a script

import argparse
import logging
import traceback
from logging.handlers import RotatingFileHandler

from utils.crashlog import setup_crashlog, log_exception, log_dir
from config import AppConfig, AssignmentConfig, ParseConfig, FirmwareConfig, LogConfig
from app import App

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _init_logging(cfg: LogConfig):
    logs = log_dir(cfg.log_dir)
    if logging.getLogger().handlers:
        return

    logging.basicConfig(level=getattr(logging, cfg.level.upper(), logging.INFO), format=LOG_FORMAT)
    fh = RotatingFileHandler(os.path.join(logs, "app.log"), maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(fh)


def _tolerance(value: str) -> float:
    v = float(value)
    if not 0.0 <= v <= 1.0:
        raise argparse.ArgumentTypeError("tolerance must be between 0 and 1")
    return v


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Assign a MIDI score to stepper motors and emit an Arduino sketch.")
    ap.add_argument('midi', help="input .mid file")
    ap.add_argument('--no-preserve-voices', dest='preserve_voices', action='store_false',
                    help="ignore voices and pack all notes onto as few motors as possible")
    ap.add_argument('--tolerance', type=_tolerance, default=AssignmentConfig.conflict_tolerance,
                    help="max share of overlapping play time when folding a voice's motors")
    ap.add_argument('--gap', type=int, default=ParseConfig.articulation_gap,
                    help="hundredths of a second cut from every note")
    ap.add_argument('--out-dir', default=FirmwareConfig.out_dir)
    ap.add_argument('--name', default=None, help="sketch name (defaults to the MIDI file name)")
    ap.add_argument('--stepper-lib', default=None, help="directory with stepper.hpp/stepper.cpp to copy")
    ap.add_argument('--preview', action='store_true', help="play the assignment through system MIDI out")
    ap.add_argument('--log-level', default=LogConfig.level)
    ap.add_argument('--log-dir', default=None)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = AppConfig(
        assign=AssignmentConfig(preserve_voices=args.preserve_voices, conflict_tolerance=args.tolerance),
        parse=ParseConfig(articulation_gap=args.gap),
        firmware=FirmwareConfig(out_dir=args.out_dir, stepper_lib=args.stepper_lib),
        log=LogConfig(level=args.log_level, log_dir=args.log_dir),
    )
    _init_logging(cfg.log)
    setup_crashlog()

    app = App(cfg)
    if not app.load(args.midi):
        print(f"File {args.midi} could not be read, see {log_dir()}")
        return 1
    app.assign()
    path = app.write(args.name)
    for k, v in app.parameters().items():
        print(f"{k}: {v}")
    print(f"sketch: {path}")
    if args.preview:
        app.preview()
    return 0


if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as e:
        log_exception("Top-level exception", e)
        logging.error("Uncaught exception: %s", e, exc_info=True)
        traceback.print_exc()
        sys.exit(1)
