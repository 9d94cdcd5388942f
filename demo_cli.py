#!/usr/bin/env python3
"""
demo_cli.py — Standalone command-line demo
============================================
Runs a full vitals scan WITHOUT the FastAPI server.
Useful for quick testing, demos, and debugging.

Usage:
    python demo_cli.py --mode batch --device 0 --age 52 --show-feed
    python demo_cli.py --simulate
    python demo_cli.py --list-devices

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool — NOT a medical device.
    Only the heart rate comes from the camera signal.
"""

import argparse
import logging
import sys
import threading
import time

import cv2

from api.session import DISCLAIMER
from camera.capture import CameraCapture, list_video_devices
from config import CAMERA_INDEX, DEFAULT_PATIENT_AGE, SIMULATION_TICK_SECONDS
from reports.store import InMemoryReportStore
from scan.orchestrator import ScanMode, ScanOrchestrator, ScanState, create_estimator
from scan.overlay import draw_overlay
from scan.runner import ScanRunner
from utils.logger import get_logger, set_level

logger = get_logger("demo_cli")

WINDOW_NAME = "Vitals Scan"


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{value}\033[0m {unit}")


def _run_simulation(orch: ScanOrchestrator) -> None:
    orch.enable_simulation()
    while orch.is_active:
        orch.simulate_tick(time.time() * 1000.0)
        time.sleep(SIMULATION_TICK_SECONDS)


def _run_camera_scan(orch: ScanOrchestrator, device: int, show_feed: bool) -> None:
    stop_event = threading.Event()

    def on_frame(frame, landmarks):
        if not show_feed:
            return
        display = draw_overlay(frame, landmarks, orch.progress,
                               time.monotonic() * 1000.0, orch.live)
        cv2.imshow(WINDOW_NAME, display)
        if cv2.waitKey(1) & 0xFF == ord("q"):
            print("\n  Scan cancelled by user.")
            stop_event.set()

    runner = ScanRunner(orch, CameraCapture(device), on_frame=on_frame)
    try:
        runner.run(stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        orch.cancel()
    finally:
        if show_feed:
            cv2.destroyAllWindows()


def _print_result(orch: ScanOrchestrator) -> None:
    print("=" * 60)
    print("  RESULTS" + ("  (SIMULATED — not a measurement)" if orch.simulated else ""))
    print("=" * 60)
    for key, value in orch.result.to_dict().items():
        pretty_print(key.replace("_", " ").title(), value)
    print("\n" + "=" * 60)
    print(f"  {DISCLAIMER}")
    print("=" * 60 + "\n")


def main():
    parser = argparse.ArgumentParser(description="Post-operative vitals scan — CLI demo")
    parser.add_argument("--mode", type=str, default=ScanMode.CONTINUOUS.value,
                        choices=[m.value for m in ScanMode])
    parser.add_argument("--device", type=int, default=CAMERA_INDEX, help="Camera index")
    parser.add_argument("--age", type=int, default=DEFAULT_PATIENT_AGE, help="Age (years)")
    parser.add_argument("--patient", type=str, default="demo-patient", help="Patient id")
    parser.add_argument("--simulate", action="store_true",
                        help="Run a simulated scan (synthetic data, clearly flagged)")
    parser.add_argument("--show-feed", action="store_true",
                        help="Show the live camera feed with the scan overlay")
    parser.add_argument("--list-devices", action="store_true", help="List cameras and exit")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    if args.verbose:
        set_level(logging.DEBUG)

    if args.list_devices:
        devices = list_video_devices()
        if not devices:
            print("  No cameras found.")
        for d in devices:
            pretty_print(f"[{d.index}]", d.label)
        return

    print("\n" + "=" * 60)
    print("  POST-OPERATIVE VITALS SCAN — CLI DEMO")
    print("=" * 60)
    print("  ⚠️  This is a WELLNESS ESTIMATION tool — NOT medical grade.")
    print("=" * 60 + "\n")

    mode = ScanMode.CONTINUOUS if args.simulate else ScanMode(args.mode)
    orch = ScanOrchestrator(create_estimator(mode, age=args.age), age=args.age)

    print(f"  Mode         : {mode.value}{' (simulated)' if args.simulate else ''}")
    print(f"  Patient      : {args.patient}, age {args.age}\n")

    if args.simulate:
        _run_simulation(orch)
    else:
        print("  Please look directly at the camera and stay still…\n")
        _run_camera_scan(orch, args.device, args.show_feed)

    if orch.state is ScanState.ERROR:
        print(f"  ERROR: {orch.error}")
        print("  Re-run with --simulate to see a simulated scan instead.")
        sys.exit(1)
    if orch.state is not ScanState.COMPLETE:
        print(f"  Scan ended in state '{orch.state.value}'. Nothing saved.")
        sys.exit(0)

    _print_result(orch)

    # Nothing is saved without an explicit yes
    answer = input("  Save this result to the patient record? [y/N] ").strip().lower()
    if answer != "y":
        print("  Discarded.")
        return
    store = InMemoryReportStore()
    report = orch.confirm(store, args.patient)
    pretty_print("Report", report.id)
    pretty_print("Status", report.status)
    print(f"    {report.summary}\n")


if __name__ == "__main__":
    main()
