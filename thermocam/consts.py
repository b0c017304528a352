# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Constants of the thermal imaging pipeline."""

# --- Sensor Constants ---
# MLX90640 array, format: (rows, cols)
THERMAL_FRAME_SHAPE = (24, 32)
# Four frames per second
THERMAL_FRAME_PERIOD = 0.25

# --- Processing Defaults ---
DEFAULT_INTERPOLATION_FACTOR = 6
DEFAULT_MANUAL_MIN_TEMP = -5.0
DEFAULT_MANUAL_MAX_TEMP = 35.0
DEFAULT_MIN_TEMP_COLOR = (0, 0, 255)
DEFAULT_MAX_TEMP_COLOR = (255, 0, 0)
DEFAULT_ALPHA = 0.5
TEMP_STEP = 1.0

# Fraction used when the temperature scale collapses to a single value
DEGENERATE_FRACTION = 0.5

# --- Overlay ---
MIN_MARKER_COLOR = (0, 255, 0)
MAX_MARKER_COLOR = (255, 255, 255)
MARKER_REACH = 2

# --- Legend ---
LEGEND_STEPS = 100
LEGEND_WIDTH = 10

# --- Raw Decoding ---
BAYER10_GROUP_PIXELS = 4
BAYER10_GROUP_BYTES = 5

# YUYV 4:2:2
YUYV_R_V = 1.4065
YUYV_G_V1 = 0.3455
YUYV_G_V2 = 0.7169
YUYV_B_U = 1.1790

# Planar YUV 4:2:0
YUV420_R_V = 1.402
YUV420_G_U = 0.344
YUV420_G_V = 0.714
YUV420_B_U = 1.772

CHROMA_OFFSET = 128

# --- Fusion ---
LUMINANCE_WEIGHTS = (0.3, 0.59, 0.11)
