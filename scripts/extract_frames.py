# Dump every frame of a video as JPEGs, named by frame index, for filmstrip review.

import argparse
from pathlib import Path

import cv2

from golftracer.ingest.video_to_frames import VideoAsset


def main() -> None:
    p = argparse.ArgumentParser()

    # Path to the swing video.
    p.add_argument("--video", required=True, help="Path to input video (mp4/mov)")

    # Output folder for the JPEGs.
    p.add_argument("--out-dir", default="data/derived/frames", help="Output dir")

    args = p.parse_args()

    asset = VideoAsset(Path(args.video))
    meta = asset.metadata
    if meta is None:
        print("Could not read frame rate or duration; nothing extracted")
        return

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    saved = 0
    for index, frame in enumerate(asset.iter_frames()):
        name = f"{index:06d}_{frame.timestamp.value}-{frame.timestamp.timescale}.jpg"
        cv2.imwrite(str(out_dir / name), frame.image, [int(cv2.IMWRITE_JPEG_QUALITY), 95])
        saved += 1

    print(f"Video: {meta.frame_rate:.3f} fps, {meta.duration_seconds:.3f} s")
    print(f"Saved {saved} frames to: {out_dir}")


if __name__ == "__main__":
    main()
