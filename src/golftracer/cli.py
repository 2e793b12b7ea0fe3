"""Golf shot tracer command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

app = typer.Typer(help="Golf ball detection over videos and photos", no_args_is_help=True)


def _open_session(
    config: Path,
    model: str | None,
    confidence: float | None,
    overlap: float | None,
    workers: int | None,
):
    from golftracer.config import load_settings
    from golftracer.logging_setup import setup_logging
    from golftracer.pipeline.session import TracerSession
    from golftracer.vision.detector import YoloDetector

    settings = load_settings(config)
    setup_logging(settings.logging.level, settings.logging.log_path)
    if workers is not None:
        settings.scheduler.max_workers = workers

    detector = YoloDetector(
        model_path=model or settings.detector.path,
        imgsz=settings.detector.imgsz,
        device=settings.detector.device,
        classes=settings.detector.classes,
    )
    session = TracerSession(detector=detector, settings=settings)
    session.set_thresholds(confidence=confidence, overlap=overlap)
    return session


@app.command("trace-video")
def trace_video(
    video: Path = typer.Option(..., exists=True, dir_okay=False, help="Path to input video"),
    model: str | None = typer.Option(None, help="Detector weights (defaults to config)"),
    confidence: float | None = typer.Option(None, min=0.0, max=1.0, help="Confidence threshold"),
    overlap: float | None = typer.Option(None, min=0.0, max=1.0, help="Overlap (IoU) threshold"),
    workers: int | None = typer.Option(None, min=1, help="Concurrent detection calls"),
    out_dir: Path = typer.Option(Path("data/runs"), help="Output directory"),
    save_frames: bool = typer.Option(False, help="Write annotated frames as JPEGs"),
    config: Path = typer.Option(Path("configs/default.yaml"), help="App config yaml"),
) -> None:
    """Detect the ball in every frame of a video and write a JSON report."""
    import cv2

    from golftracer.pipeline.overlay import render_filmstrip
    from golftracer.schemas import build_report, write_report

    with _open_session(config, model, confidence, overlap, workers) as session:
        frames_dispatched = session.load_video(video).result()
        session.wait()

        report = build_report(
            source=video,
            media_kind="video",
            thresholds=session.thresholds,
            frames_extracted=frames_dispatched,
            results=session.store.results(),
        )
        run_dir = out_dir / video.stem
        report_path = write_report(run_dir / "detections.json", report)

        if save_frames:
            frames_dir = run_dir / "frames"
            frames_dir.mkdir(parents=True, exist_ok=True)
            for index, image in enumerate(render_filmstrip(session.frames, session.store), start=1):
                cv2.imwrite(str(frames_dir / f"{index:06d}.jpg"), image, [int(cv2.IMWRITE_JPEG_QUALITY), 95])

    print(f"Frames {frames_dispatched} | Detected {report.frames_detected}")
    print(f"Report written to: {report_path}")


@app.command("detect-image")
def detect_image(
    image: Path = typer.Option(..., exists=True, dir_okay=False, help="Path to input photo"),
    model: str | None = typer.Option(None, help="Detector weights (defaults to config)"),
    confidence: float | None = typer.Option(None, min=0.0, max=1.0, help="Confidence threshold"),
    overlap: float | None = typer.Option(None, min=0.0, max=1.0, help="Overlap (IoU) threshold"),
    out: Path | None = typer.Option(None, help="Optional annotated image output path"),
    config: Path = typer.Option(Path("configs/default.yaml"), help="App config yaml"),
) -> None:
    """Detect the ball in a single photo."""
    import cv2

    from golftracer.pipeline.overlay import draw_detections

    with _open_session(config, model, confidence, overlap, workers=1) as session:
        session.load_image(image)
        session.wait()

        frames = session.frames
        boxes = session.store.lookup(frames[0].timestamp) if frames else None

        if out is not None and frames:
            out.parent.mkdir(parents=True, exist_ok=True)
            cv2.imwrite(str(out), draw_detections(frames[0].image, boxes or ()))

    for box in boxes or ():
        print(f"x={box.x:.3f} y={box.y:.3f} w={box.width:.3f} h={box.height:.3f} conf={box.confidence:.2f}")
    print(f"Detections: {len(boxes or ())}")


if __name__ == "__main__":
    app()
