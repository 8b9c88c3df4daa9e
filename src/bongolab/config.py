"""Configuration settings for BongoLab."""

import os
from dataclasses import dataclass
from pathlib import Path

# Palette-reduction algorithms understood by the encoder
QUANTIZERS = ("mediancut", "maxcoverage", "fastoctree")

RGBA = tuple[int, int, int, int]


@dataclass
class AnimationConfig:
    """Configuration for frame synthesis and GIF encoding."""

    # Number of frames in one drumming cycle
    FRAME_COUNT: int = 8

    # Display time of every frame in milliseconds
    DELAY_MS: int = 200

    # Loop count written to the GIF (0 = loop forever)
    REPEAT: int = 0

    # Palette sampling step: 1 samples every pixel, 30 every 30th pixel
    QUALITY: int = 10

    # Palette-reduction algorithm identifier
    QUANTIZER: str = "mediancut"

    # Smallest accepted source width/height in pixels
    MIN_DIMENSION: int = 10

    # Thread pool size for frame synthesis (1 = sequential)
    SYNTHESIS_WORKERS: int = 1

    def __post_init__(self) -> None:
        if self.FRAME_COUNT < 1:
            raise ValueError(f"FRAME_COUNT must be at least 1, got {self.FRAME_COUNT}")

        # GIF stores delays in hundredths of a second in a 16-bit field
        if self.DELAY_MS < 0 or self.DELAY_MS > 655350:
            raise ValueError(
                f"DELAY_MS must be between 0 and 655350, got {self.DELAY_MS}"
            )

        if self.REPEAT < 0 or self.REPEAT > 65535:
            raise ValueError(f"REPEAT must be between 0 and 65535, got {self.REPEAT}")

        if self.QUALITY < 1 or self.QUALITY > 30:
            raise ValueError(f"QUALITY must be between 1 and 30, got {self.QUALITY}")

        if self.QUANTIZER not in QUANTIZERS:
            raise ValueError(
                f"Invalid QUANTIZER: {self.QUANTIZER} (expected one of {', '.join(QUANTIZERS)})"
            )

        if self.MIN_DIMENSION < 1:
            raise ValueError(
                f"MIN_DIMENSION must be positive, got {self.MIN_DIMENSION}"
            )

        if self.SYNTHESIS_WORKERS < 1:
            raise ValueError(
                f"SYNTHESIS_WORKERS must be at least 1, got {self.SYNTHESIS_WORKERS}"
            )


@dataclass
class OverlayConfig:
    """Colours and geometry of the drumming overlays.

    Ratios are fractions of the source width (``*_X``) or height (``*_Y``);
    ``*_MAX`` values cap the arm size in pixels.
    Stick offsets are multiples of the drum size, measured outward from its
    left edge.
    """

    ARM_COLOR: RGBA = (255, 107, 107, 255)
    DRUM_COLOR: RGBA = (139, 69, 19, 255)
    STICK_COLOR: RGBA = (255, 255, 255, 255)

    # Arm size
    ARM_WIDTH_RATIO: float = 0.15
    ARM_WIDTH_MAX: int = 100
    ARM_HEIGHT_RATIO: float = 0.30
    ARM_HEIGHT_MAX: int = 150

    # Arm rest positions and swing amplitude
    LEFT_ARM_X: float = 0.10
    RIGHT_ARM_X: float = 0.80
    ARM_Y: float = 0.30
    SWING_X: float = 30.0
    SWING_Y: float = 20.0

    # Drum and sticks, relative to the drum size
    DRUM_X: float = 0.45
    DRUM_Y: float = 0.65
    DRUM_SIZE_RATIO: float = 0.12
    STICK_WIDTH: int = 2
    STICK_LENGTH_RATIO: float = 0.8
    LEFT_STICK_OFFSET: float = 0.3
    RIGHT_STICK_OFFSET: float = 1.1
    STICK_RAISE: float = 0.2

    def __post_init__(self) -> None:
        for name in ("ARM_COLOR", "DRUM_COLOR", "STICK_COLOR"):
            color = getattr(self, name)
            if len(color) != 4 or any(not 0 <= c <= 255 for c in color):
                raise ValueError(f"{name} must be an RGBA tuple of 0-255 ints, got {color}")

        if self.ARM_WIDTH_MAX <= 0 or self.ARM_HEIGHT_MAX <= 0:
            raise ValueError("Arm size caps must be positive")

        if self.STICK_WIDTH <= 0:
            raise ValueError(f"STICK_WIDTH must be positive, got {self.STICK_WIDTH}")


@dataclass
class PathConfig:
    """Configuration for file paths and directories."""

    UPLOAD_DIR: Path = Path("data/uploads")
    OUTPUT_DIR: Path = Path("data/generated")
    LOGS_DIR: Path = Path("logs")


@dataclass
class ServiceConfig:
    """HTTP service settings with environment variable overrides."""

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Uploads larger than this are rejected with 413
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        """Apply environment variable overrides after initialization."""
        env_overrides = {
            "HOST": "BONGOLAB_HOST",
            "PORT": "BONGOLAB_PORT",
            "MAX_UPLOAD_BYTES": "BONGOLAB_MAX_UPLOAD_BYTES",
            "LOG_LEVEL": "BONGOLAB_LOG_LEVEL",
        }

        # Cloud platforms hand the port over as plain PORT
        if os.getenv("PORT") and not os.getenv("BONGOLAB_PORT"):
            self.PORT = int(os.environ["PORT"])

        for attr_name, env_var_name in env_overrides.items():
            env_value = os.getenv(env_var_name)
            if env_value:
                current = getattr(self, attr_name)
                setattr(self, attr_name, type(current)(env_value))

        if not 0 < self.PORT < 65536:
            raise ValueError(f"PORT must be between 1 and 65535, got {self.PORT}")

        if self.MAX_UPLOAD_BYTES <= 0:
            raise ValueError(
                f"MAX_UPLOAD_BYTES must be positive, got {self.MAX_UPLOAD_BYTES}"
            )

        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        if self.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid LOG_LEVEL: {self.LOG_LEVEL}")


# Default configuration instances
DEFAULT_ANIMATION_CONFIG = AnimationConfig()
DEFAULT_OVERLAY_CONFIG = OverlayConfig()
DEFAULT_PATH_CONFIG = PathConfig()
