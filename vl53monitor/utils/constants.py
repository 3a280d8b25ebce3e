"""
Constants for the VL53L0X monitor

Wire protocol defaults, recording limits and chart axis parameters shared
by the serial layer, the time-series store and the CLI.
"""

# Serial link
DEFAULT_BAUDRATE = 115200
LINE_TERMINATOR = "\n"
WIRE_ENCODING = "utf-8"

# Sample rate limits accepted by the firmware (START hz=, RATE hz=)
MIN_HZ = 1
MAX_HZ = 50
DEFAULT_HZ = 50

# Recording
MAX_POINTS = 10000  # FIFO capacity of the time-series store

# Chart axes
X_SPAN_DEFAULT_MS = 10000  # sliding window, 10 s
Y_INIT_MAX_MM = 1000  # 100 cm
# Step ladder for nice_ceil (mm). Past the last step, round up to its multiples.
Y_STEP_LADDER = (100, 200, 250, 500, 1000, 1500, 2000, 3000, 4000, 5000,
                 6000, 8000, 10000)

# Lines printed by the ESP32 ROM bootloader on reset
BOOT_NOISE_PREFIXES = ("ESP-ROM:", "ets ", "rst:", "load:", "entry ")

# CSV export
CSV_FILENAME = "vl53l0x_log.csv"
CSV_HEADER = "t_ms,dist_mm"
LEGACY_CSV_HEADER = "time_ms,distance_mm"

# Disconnect: bounded wait for the read thread after cancelling its read
CANCEL_TIMEOUT_S = 1.0
