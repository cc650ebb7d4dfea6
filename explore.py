import os
import sys
import warnings
from dataclasses import dataclass, replace
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    try:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")
    except Exception:
        pass

import imageio

from mandelview import (
    Configuration,
    ExplorerSession,
    MandelviewError,
    load_configuration,
)
from mandelview.colors import frame_to_image

from argparse import ArgumentParser


def select_device():
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass
class Selection:
    first: tuple[int, int]
    second: tuple[int, int]


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set and replay rectangle zoom selections.')

    parser.add_argument('--config', type=str, dest='config',
                        help='JSON configuration file (AllowDistortion, MaxIter, ThreadCount). Created with defaults when missing.',
                        metavar='CONFIG', default='config.json')

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='override the maximum number of iterations per point',
                        metavar='MAX_ITERATIONS', default=None)

    parser.add_argument('--thread-count', type=int,
                        dest='thread_count', help='override the number of parallel row bands',
                        metavar='THREAD_COUNT', default=None)

    parser.add_argument('--allow-distortion', dest='allow_distortion', action='store_true', default=None,
                        help='Sample each axis with its own ratio so the selected box fills the image.')

    parser.add_argument('--width', type=int,
                        dest='width', help='width of the image in pixels',
                        metavar='WIDTH', default=800)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of the image in pixels',
                        metavar='HEIGHT', default=600)

    parser.add_argument('--select', type=int, nargs=4, dest='selections', action='append',
                        metavar=('X1', 'Y1', 'X2', 'Y2'),
                        help='Zoom to the box between two clicked pixels. May be repeated; applied in order.')

    parser.add_argument('--reset', action='store_true',
                        help='Return to the default view after replaying the selections.')

    parser.add_argument('--output', dest='output', type=str, default='mandelbrot.png',
                        help='Destination of the final image.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format of the final image. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--gif', dest='gif', type=str, default=None,
                        help='Also write every rendered frame, overlays included, to this GIF.')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to colorize the fractal instead of grayscale',
                        metavar='COLORMAP', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_configuration(opt, parser: ArgumentParser) -> Configuration:
    try:
        config = load_configuration(Path(opt.config).expanduser())
        overrides = {}
        if opt.max_iterations is not None:
            overrides['max_iterations'] = opt.max_iterations
        if opt.thread_count is not None:
            overrides['thread_count'] = opt.thread_count
        if opt.allow_distortion is not None:
            overrides['allow_distortion'] = True
        config = replace(config, **overrides)
        config.validate()
    except MandelviewError as exc:
        parser.error(str(exc))
    return config


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output_path(opt, parser: ArgumentParser) -> tuple[Path, str]:
    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    output_path = Path(opt.output).expanduser()
    if output_path.suffix:
        if output_path.suffix.lower() != f".{image_format}":
            parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(f".{image_format}")
    return output_path.resolve(), image_format


def report(frame, label):
    if frame.cached:
        log(f"{label}: served from cache")
    elif frame.elapsed is not None:
        print(f"Mandelbrot took {frame.elapsed:.3f}s")


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    log("TensorFlow version: %s" % tf.__version__)

    config = resolve_configuration(opt, parser)
    output_path, image_format = resolve_output_path(opt, parser)
    selections = [Selection(first=(s[0], s[1]), second=(s[2], s[3])) for s in opt.selections or []]
    log(f"Configuration: {config}")

    session = ExplorerSession(config, opt.width, opt.height, device=select_device())
    frames = []

    def keep(frame):
        if opt.gif is not None:
            frames.append(np.array(frame_to_image(frame, colormap=opt.colormap)))

    try:
        frame = session.generate()
        report(frame, "initial view")
        keep(frame)

        for i, selection in enumerate(selections):
            print("selection {0} out of {1}".format(i + 1, len(selections)), end='\r')
            marker = session.click(*selection.first)
            report(marker, "first corner")
            keep(marker)
            frame = session.click(*selection.second)
            report(frame, "second corner")
            keep(frame)
            log(f"Viewport: {session.viewport.corners}")
            frame = session.generate()
            keep(frame)

        if opt.reset:
            frame = session.reset()
            report(frame, "reset")
            keep(frame)
    except MandelviewError as exc:
        parser.error(str(exc))

    final_image = frame_to_image(frame, colormap=opt.colormap)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    final_image.save(str(output_path), format=_pil_format_name(image_format))
    log(f"Wrote {output_path}")

    if opt.gif is not None:
        gif_path = Path(opt.gif).expanduser().resolve()
        gif_path.parent.mkdir(parents=True, exist_ok=True)
        with imageio.get_writer(str(gif_path), mode='I', duration=0.5, loop=0) as writer:
            for frame_array in frames:
                writer.append_data(frame_array)
        log(f"Wrote {gif_path} ({len(frames)} frames)")


if __name__ == '__main__':
    main()
