#!/usr/bin/env python3
"""
Tannen – gesture-driven scatter/tree morphing scene
Run with:  python -m tannen.main
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from tannen import config as cfg
from tannen.app_state import AddImages, SetGestureMode
from tannen.gesture_control import GestureControl
from tannen.input_controller import InputController
from tannen.scene import Scene

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tannen morphing tree scene")
    parser.add_argument("--photos", nargs="*", default=[], help="image files to hang on the tree")
    parser.add_argument("--foliage", type=int, default=cfg.FOLIAGE_COUNT)
    parser.add_argument("--ornaments", type=int, default=cfg.ORNAMENT_COUNT)
    parser.add_argument("--gestures", action="store_true", help="start with hand tracking on")
    parser.add_argument("--no-preview", action="store_true", help="run headless")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="[%(levelname)s] %(message)s")

    gestures = GestureControl()
    scene = Scene(foliage_count=args.foliage, ornament_count=args.ornaments, gestures=gestures)
    controller = InputController(scene, gestures_on=args.gestures)

    if args.photos:
        scene.submit(AddImages(tuple(Path(p).resolve().as_uri() for p in args.photos)))
    if args.gestures:
        scene.submit(SetGestureMode(True))

    renderer = None
    if cfg.SHOW_PREVIEW and not args.no_preview:
        from tannen.preview import PreviewRenderer
        renderer = PreviewRenderer()

    controller.start()
    print("[Tannen] Running – Space toggles the tree, G toggles gestures, Q quits.")

    last = time.perf_counter()
    try:
        while not controller.quit.is_set():
            now = time.perf_counter()
            frame = scene.tick(now - last)
            last = now

            if renderer is not None:
                if not renderer.draw(frame, scene.groups, gestures.latest_frame()):
                    break
            else:
                # Without preview, sleep briefly to yield CPU
                time.sleep(1.0 / 60)

    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()
        gestures.disable()
        if renderer is not None:
            renderer.close()
        print("\n[Tannen] Stopped.")


if __name__ == "__main__":
    main()
