"""
Tannen – Hand Tracker
Threaded webcam capture + MediaPipe HandLandmarker inference.
Keeps the frame loop free of I/O blocking.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Tuple
from urllib.request import urlretrieve

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from . import config as cfg
from .landmarks import HandData, Landmark, TrackerUnavailable

logger = logging.getLogger(__name__)


def ensure_model(path: Path | str = cfg.MP_MODEL_PATH) -> Path:
    """Download the MediaPipe model locally if it is absent."""
    path = Path(path)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmark model to %s", path)
        urlretrieve(cfg.MP_MODEL_URL, path)
    return path


class HandTracker:
    """
    Runs webcam capture in a background thread and exposes the latest
    hand data via :meth:`latest`.

    ``seq`` is bumped once per successfully processed frame, so the
    caller can tell a fresh sample from a repeat.
    """

    def __init__(self, camera_index: int = cfg.CAMERA_INDEX, model_path: Path | str = cfg.MP_MODEL_PATH) -> None:
        self._camera_index = camera_index
        self._model_path = model_path
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._hand: Optional[HandData] = None
        self._frame: Optional[np.ndarray] = None
        self._frame_seq: int = 0
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._frame_interval = 1.0 / cfg.TARGET_FPS
        self._t0 = time.perf_counter()

    # ── public API ───────────────────────────────────────────────────
    def start(self) -> None:
        """Load the model, open the webcam and begin the capture thread."""
        try:
            self._landmarker = self._create_landmarker()
        except Exception as exc:
            raise TrackerUnavailable(f"Hand landmark model failed to load: {exc}") from exc

        self._cap = cv2.VideoCapture(self._camera_index)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.CAPTURE_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.CAPTURE_HEIGHT)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)  # drop stale frames

        if not self._cap.isOpened():
            self._release()
            raise TrackerUnavailable(f"Cannot open camera {self._camera_index}")

        self._running = True
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop capturing; the capture thread releases its own resources on exit."""
        self._running = False
        thread, self._thread = self._thread, None
        if thread is None:
            self._release()
            return
        thread.join(timeout=2)
        if thread.is_alive():
            logger.warning("Capture thread still busy; it will release the camera when it exits")

    def latest(self) -> Tuple[Optional[HandData], Optional[np.ndarray], int]:
        """Return the most recent (hand, frame, seq) snapshot."""
        with self._lock:
            return self._hand, self._frame, self._frame_seq

    # ── setup / teardown ─────────────────────────────────────────────
    def _create_landmarker(self) -> vision.HandLandmarker:
        base_options = mp_python.BaseOptions(model_asset_path=str(ensure_model(self._model_path)))
        options = vision.HandLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_hands=cfg.MP_MAX_HANDS,
            min_hand_detection_confidence=cfg.MP_DETECTION_CONFIDENCE,
            min_hand_presence_confidence=cfg.MP_PRESENCE_CONFIDENCE,
            min_tracking_confidence=cfg.MP_TRACKING_CONFIDENCE,
        )
        return vision.HandLandmarker.create_from_options(options)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None

    # ── capture loop (runs in background thread) ─────────────────────
    def _loop(self) -> None:
        try:
            while self._running:
                self._step()
        finally:
            self._release()

    def _step(self) -> None:
        t0 = time.perf_counter()

        ok, frame = self._cap.read()
        if not ok:
            time.sleep(self._frame_interval)
            return

        # Flip horizontally for natural mirror view
        frame = cv2.flip(frame, 1)
        timestamp_ms = int((t0 - self._t0) * 1000)

        try:
            hand = self._detect(frame, timestamp_ms)
        except Exception:
            # A single bad frame must not take the tracker down
            logger.debug("Hand detection failed on frame %d", timestamp_ms, exc_info=True)
            time.sleep(self._frame_interval)
            return

        with self._lock:
            self._hand = hand
            self._frame = frame
            self._frame_seq += 1

        # Rate-limit to TARGET_FPS
        elapsed = time.perf_counter() - t0
        sleep_time = self._frame_interval - elapsed
        if sleep_time > 0:
            time.sleep(sleep_time)

    def _detect(self, frame: np.ndarray, timestamp_ms: int) -> Optional[HandData]:
        # MediaPipe expects RGB
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(image, timestamp_ms)

        if not result.hand_landmarks:
            return None

        handedness = "Right"
        if result.handedness:
            handedness = result.handedness[0][0].category_name

        landmarks = [Landmark(lm.x, lm.y, lm.z) for lm in result.hand_landmarks[0]]
        if cfg.SHOW_PREVIEW:
            _draw_landmarks(frame, landmarks)
        return HandData(landmarks=landmarks, handedness=handedness, timestamp=time.perf_counter())


def _draw_landmarks(frame: np.ndarray, landmarks) -> None:
    h, w = frame.shape[:2]
    for lm in landmarks:
        cv2.circle(frame, (int(lm.x * w), int(lm.y * h)), 3, (0, 255, 200), -1)
