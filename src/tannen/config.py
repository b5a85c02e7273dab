"""
Tannen – Configuration
All tuneable knobs live here so nothing is scattered across modules.
"""

# ── Camera ───────────────────────────────────────────────────────────
CAMERA_INDEX = 0                # webcam device index
CAPTURE_WIDTH = 640             # resolution sent to MediaPipe (lower = faster)
CAPTURE_HEIGHT = 480
TARGET_FPS = 30                 # cap capture rate to save CPU

# ── MediaPipe HandLandmarker ─────────────────────────────────────────
MP_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)
MP_MODEL_PATH = "models/hand_landmarker.task"
MP_MAX_HANDS = 1                # single-hand interaction only
MP_DETECTION_CONFIDENCE = 0.5
MP_PRESENCE_CONFIDENCE = 0.5
MP_TRACKING_CONFIDENCE = 0.5

# ── Gesture thresholds ───────────────────────────────────────────────
# Average fingertip→wrist distance (normalised units) below which the
# hand counts as a fist, and above which it counts as open.
FIST_THRESHOLD = 0.15
OPEN_THRESHOLD = 0.35
# Thumb-tip → index-tip distance that counts as a pinch.
PINCH_THRESHOLD = 0.05

# Number of consecutive samples a mode must be seen before committing.
# 1 = act on the first sample; the fist/open dead band already holds the
# previous mode for ambiguous poses.
GESTURE_CONFIDENCE_FRAMES = 1

# Hand-centre offset from frame centre → group rotation (radians).
ROTATION_GAIN = 3.0
ROTATION_LIMIT = 1.5

# ── Morph ────────────────────────────────────────────────────────────
# Exponential smoothing rate (1/s) of each group's morph clock.
FOLIAGE_MORPH_RATE = 2.0
ORNAMENT_MORPH_RATE = 1.5
GIFT_MORPH_RATE = 1.5

# Longest frame gap the clocks will integrate in one step (seconds).
MAX_FRAME_DELTA = 0.1

# Reference frame rate for the per-frame blend factors below.
REFERENCE_FPS = 60.0

# ── Group orientation ────────────────────────────────────────────────
GROUP_POSITION = (0.0, -4.0, 0.0)
AUTO_SPIN_PER_FRAME = 0.002     # yaw added per reference frame when formed
FORMED_LEVEL_BLEND = 0.05       # pitch → 0 when formed
FOCUS_RECENTER_BLEND = 0.1      # yaw/pitch → 0 in focus
SCATTER_TRACK_BLEND = 0.05      # yaw/pitch → rotation control when scattered

# ── Focus / zoom ─────────────────────────────────────────────────────
FOCUS_BLEND = 0.1               # share of remaining distance per frame
FOCUS_SCALE = 2.0
ZOOM_DEFAULT = 15.0
ZOOM_MIN = 5.0
ZOOM_MAX = 40.0
ZOOM_SPEED = 0.02               # distance per unit of wheel delta

# ── Camera (scene) ───────────────────────────────────────────────────
CAMERA_POSITION = (0.0, 2.0, 25.0)
CAMERA_FOV = 50.0

# ── Shapes ───────────────────────────────────────────────────────────
TREE_HEIGHT = 12.0
TREE_RADIUS_BOTTOM = 5.5
SCATTER_RADIUS = 15.0

# ── Population ───────────────────────────────────────────────────────
FOLIAGE_COUNT = 12000
ORNAMENT_COUNT = 600
GIFT_COUNT = 40

# ── Idle motion ──────────────────────────────────────────────────────
FOLIAGE_IDLE_AMPLITUDE = 0.1
ORNAMENT_FLOAT_AMPLITUDE = 0.5
GIFT_FLOAT_AMPLITUDE = 0.2
PHOTO_FLOAT_AMPLITUDE = 0.5

# ── Star ─────────────────────────────────────────────────────────────
STAR_HEIGHT = 6.5
STAR_SPIN_PER_FRAME = 0.01

# ── Palette (linear RGB 0-1) ─────────────────────────────────────────
COLORS = {
    "emerald": (0x02 / 255, 0x3E / 255, 0x28 / 255),
    "ruby": (0x85 / 255, 0x27 / 255, 0x36 / 255),
    "gold": (0xE2 / 255, 0xC9 / 255, 0x9E / 255),
    "blue": (0x41 / 255, 0x4B / 255, 0x9E / 255),
    "purple": (0xAA / 255, 0x74 / 255, 0xA0 / 255),
}

# ── Debug / UI ───────────────────────────────────────────────────────
SHOW_PREVIEW = True             # draw the OpenCV scene preview
PREVIEW_WIDTH = 1280
PREVIEW_HEIGHT = 720
PREVIEW_FOLIAGE_STRIDE = 4      # draw every n-th foliage particle
