"""Frame sources and sinks for video files and image directories."""

import logging
from collections.abc import Iterator
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".avi", ".mkv", ".mov"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff"}


def detect_input_type(path: str | Path) -> str:
    """Detect whether an input path is an image directory or a video file.

    Args:
        path: Directory of images or video file.

    Returns:
        "images" for a directory, "video" for a file.

    Raises:
        ValueError: If the path does not exist.
    """
    path = Path(path)
    if path.is_dir():
        return "images"
    if path.is_file():
        if path.suffix.lower() not in VIDEO_EXTENSIONS:
            logger.warning(
                "Input %s has an unrecognized video extension; trying anyway",
                path.name,
            )
        return "video"
    raise ValueError(f"Input path does not exist: {path}")


def is_video_path(path: str | Path) -> bool:
    """Whether an output path names a video file (by extension)."""
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


class ImageSequence:
    """Frame source over a directory of images, sorted by filename.

    Args:
        image_dir: Directory containing the frames.

    Raises:
        ValueError: If the directory does not exist or holds no images.
    """

    def __init__(self, image_dir: str | Path):
        self.image_dir = Path(image_dir)
        if not self.image_dir.is_dir():
            raise ValueError(f"Image directory does not exist: {self.image_dir}")

        self.frame_files = sorted(
            (
                f
                for f in self.image_dir.iterdir()
                if f.is_file() and f.suffix.lower() in IMAGE_EXTENSIONS
            ),
            key=lambda p: p.name,
        )
        if not self.frame_files:
            raise ValueError(f"No images found in directory: {self.image_dir}")

        logger.info(
            "Detected %d frames in %s (image directory input)",
            len(self.frame_files),
            self.image_dir,
        )

    @property
    def frame_count(self) -> int:
        """Total number of frames available."""
        return len(self.frame_files)

    @property
    def fps(self) -> float | None:
        """Frame rate; unknown for image directories."""
        return None

    def __enter__(self):
        """Context manager entry (no-op for image directories)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit (no resources to release)."""
        pass

    def iterate_frames(
        self, start: int = 0, stop: int | None = None
    ) -> Iterator[tuple[int, np.ndarray | None]]:
        """Iterate over frames in order.

        Args:
            start: First frame index to yield.
            stop: Frame index to stop before. None = end of sequence.

        Yields:
            Tuple of (frame_idx, image) where image is BGR (H, W, 3) uint8,
            or None if the file could not be decoded.
        """
        if stop is None:
            stop = self.frame_count

        for frame_idx in range(start, min(stop, self.frame_count)):
            img_path = self.frame_files[frame_idx]
            img = cv2.imread(str(img_path))
            if img is None:
                logger.warning(
                    "Failed to read image: %s (frame %d)", img_path, frame_idx
                )
            yield frame_idx, img


class VideoFileSource:
    """Frame source over a video file read with cv2.VideoCapture.

    Args:
        video_path: Path to the video file.
    """

    def __init__(self, video_path: str | Path):
        self.video_path = Path(video_path)
        self._cap: cv2.VideoCapture | None = None

    def __enter__(self):
        """Open the video.

        Raises:
            RuntimeError: If the video cannot be opened.
        """
        # Note: H.264 streams may emit benign "Invalid NAL unit size" warnings
        # from ffmpeg at the end of decoding.
        self._cap = cv2.VideoCapture(str(self.video_path))
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise RuntimeError(f"Failed to open video: {self.video_path}")

        logger.info(
            "Opened %s: %dx%d @ %.1f fps, %d frames",
            self.video_path.name,
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            self._cap.get(cv2.CAP_PROP_FPS),
            self.frame_count,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release the capture handle."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def _require_open(self) -> cv2.VideoCapture:
        if self._cap is None:
            raise RuntimeError(
                "Video source is not open; use it as a context manager"
            )
        return self._cap

    @property
    def frame_count(self) -> int:
        """Frame count reported by the container (may be approximate)."""
        return int(self._require_open().get(cv2.CAP_PROP_FRAME_COUNT))

    @property
    def fps(self) -> float | None:
        """Frame rate reported by the container, or None if unknown."""
        fps = self._require_open().get(cv2.CAP_PROP_FPS)
        return float(fps) if fps and fps > 0 else None

    def iterate_frames(
        self, start: int = 0, stop: int | None = None
    ) -> Iterator[tuple[int, np.ndarray]]:
        """Iterate over frames sequentially.

        Frames before ``start`` are decoded and discarded rather than seeked
        past, so the sequence stays frame-exact.

        Args:
            start: First frame index to yield.
            stop: Frame index to stop before. None = end of video.

        Yields:
            Tuple of (frame_idx, image) with image BGR (H, W, 3) uint8.
        """
        cap = self._require_open()
        frame_idx = 0
        while stop is None or frame_idx < stop:
            ret, frame = cap.read()
            if not ret:
                break
            if frame_idx >= start:
                yield frame_idx, frame
            frame_idx += 1


def open_frame_source(path: str | Path) -> ImageSequence | VideoFileSource:
    """Open the right frame source for an input path.

    Args:
        path: Video file or image directory.

    Returns:
        Unentered frame source; use it as a context manager.
    """
    if detect_input_type(path) == "images":
        return ImageSequence(path)
    return VideoFileSource(path)


class FrameWriter:
    """Writes frames to a video file or to a directory of PNGs.

    The output kind is chosen from the path: a video extension produces a
    video file (created lazily on the first frame, when the size is known),
    anything else is treated as a directory of ``frame_NNNNNN.png`` files.

    Args:
        output_path: Video file path or output directory.
        fps: Frame rate of the output video.
        codec: FourCC code for video output.
    """

    def __init__(
        self, output_path: str | Path, fps: float = 30.0, codec: str = "mp4v"
    ):
        self.output_path = Path(output_path)
        self.fps = fps
        self.codec = codec
        self.is_video = is_video_path(self.output_path)
        self.frames_written = 0
        self._writer: cv2.VideoWriter | None = None

    def __enter__(self):
        """Prepare the output location."""
        if self.is_video:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            self.output_path.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Finalize the video file, if any."""
        self.close()

    def close(self) -> None:
        """Release the video writer, if any."""
        if self._writer is not None:
            self._writer.release()
            self._writer = None

    def write(self, frame_idx: int, frame: np.ndarray) -> None:
        """Write one frame.

        Args:
            frame_idx: Source frame index (used to name PNG outputs).
            frame: BGR (H, W, 3) or gray (H, W) uint8 frame.

        Raises:
            RuntimeError: If the video writer cannot be opened.
        """
        if self.is_video:
            if self._writer is None:
                height, width = frame.shape[:2]
                fourcc = cv2.VideoWriter_fourcc(*self.codec)
                self._writer = cv2.VideoWriter(
                    str(self.output_path),
                    fourcc,
                    self.fps,
                    (width, height),
                    frame.ndim == 3,
                )
                if not self._writer.isOpened():
                    self._writer = None
                    raise RuntimeError(
                        f"Failed to open video writer for {self.output_path} "
                        f"(codec {self.codec!r})"
                    )
                logger.info(
                    "Writing video to: %s @ %.1f fps", self.output_path, self.fps
                )
            self._writer.write(frame)
        else:
            output_path = self.output_path / f"frame_{frame_idx:06d}.png"
            cv2.imwrite(str(output_path), frame)

        self.frames_written += 1
