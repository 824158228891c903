"""Command line entry point: render a scene document to a BMP file or stdout."""
import argparse
import logging
import os
import sys
import time

from minirt import constants
from minirt.core import Renderer
from minirt.loader import SceneError, build_scene, load_document
from minirt.utils import encode_image, output_path, save_image


def vector_argument(text):
    """Parse "x,y,z" into a list of three floats."""
    parts = text.split(",")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected x,y,z, got {text!r}")
    try:
        return [float(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected three numbers, got {text!r}")


def positive_int(text):
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def positive_float(text):
    value = float(text)
    if not value > 0.0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(prog="minirt", description="minirt ray tracer")
    parser.add_argument("input", nargs="?", help="Scene document (JSON with comments)")
    parser.add_argument("output", nargs="?", help="Output image path (.bmp appended unless -N)")
    parser.add_argument("--ui", action="store_true", help="Launch the interactive Gradio UI")
    parser.add_argument("-S", "--stdout", action="store_true", help="Write the BMP image to stdout")
    parser.add_argument("-N", "--no-output-bmp-suffix", action="store_true",
                        help="Do not append .bmp to the output path")
    parser.add_argument("-W", "--width", type=positive_int, help="Override image width")
    parser.add_argument("-H", "--height", type=positive_int, help="Override image height")
    parser.add_argument("-s", "--super-sampling", type=positive_int, default=1,
                        help="Samples per pixel along each axis")
    parser.add_argument("-j", "--jobs", type=positive_int, default=1, help="Worker processes")
    parser.add_argument("-P", "--camera-position", type=vector_argument, metavar="X,Y,Z")
    camera = parser.add_mutually_exclusive_group()
    camera.add_argument("-D", "--camera-direction", type=vector_argument, metavar="X,Y,Z")
    camera.add_argument("-L", "--camera-look-at", type=vector_argument, metavar="X,Y,Z")
    parser.add_argument("-a", "--ambient-light", type=vector_argument, metavar="R,G,B")
    parser.add_argument("--void-color", type=vector_argument, metavar="R,G,B")
    emit = parser.add_mutually_exclusive_group()
    emit.add_argument("-n", "--emit-normal", action="store_true", help="Render surface normals")
    emit.add_argument("-d", "--emit-distance", action="store_true", help="Render hit distances")
    parser.add_argument("-g", "--gamma", type=positive_float, help=f"Default {constants.DEFAULT_GAMMA}")
    parser.add_argument("-e", "--exposure", type=positive_float,
                        help=f"Default {constants.DEFAULT_EXPOSURE}")
    parser.add_argument("-l", "--ldr", action="store_true",
                        help="Clip radiance to [0, 1] instead of tone mapping")
    parser.add_argument("--verbose", action="store_true", help="Log scene loading details")
    return parser


def apply_overrides(document, args):
    """Apply command-line overrides to a parsed scene document in place."""
    if args.width is not None:
        document["width"] = args.width
    if args.height is not None:
        document["height"] = args.height
    if args.ambient_light is not None:
        document["ambientLight"] = args.ambient_light
    if args.void_color is not None:
        document["voidColor"] = args.void_color

    camera = document.setdefault("camera", {})
    if not isinstance(camera, dict):
        return document
    if args.camera_position is not None:
        camera["position"] = args.camera_position
    if args.camera_direction is not None:
        camera.pop("lookAt", None)
        camera["direction"] = args.camera_direction
    if args.camera_look_at is not None:
        camera.pop("direction", None)
        camera["lookAt"] = args.camera_look_at
    return document


def render_image(renderer, args):
    if args.emit_normal:
        return renderer.render_normals()
    if args.emit_distance:
        return renderer.render_distances()
    exposure = args.exposure if args.exposure is not None else constants.DEFAULT_EXPOSURE
    gamma = args.gamma if args.gamma is not None else constants.DEFAULT_GAMMA
    return renderer.render(exposure=exposure, gamma=gamma, ldr=args.ldr)


def run_render(args, log=print):
    document = apply_overrides(load_document(args.input), args)
    base_dir = os.path.dirname(os.path.abspath(args.input))
    scene = build_scene(document, base_dir=base_dir)

    renderer = Renderer(scene, super_sampling=args.super_sampling, jobs=args.jobs)
    log(f"Rendering {args.input} ({scene.image_width}x{scene.image_height}, "
        f"{args.super_sampling}x{args.super_sampling} samples, {args.jobs} jobs)...")
    t0 = time.time()
    pixels = render_image(renderer, args)
    log(f"  Complete in {time.time() - t0:.2f}s")

    if args.stdout:
        sys.stdout.buffer.write(encode_image(pixels))
        sys.stdout.buffer.flush()
        return None
    path = output_path(args.output, bmp_suffix=not args.no_output_bmp_suffix)
    save_image(pixels, path)
    log(f"Saved {path}")
    return path


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.ui:
        from minirt.ui import create_ui, CSS
        print("Launching UI...")
        demo = create_ui()
        demo.launch(css=CSS)
        return 0

    if args.input is None:
        parser.print_help()
        return 1
    if args.ldr and (args.gamma is not None or args.exposure is not None):
        parser.error("--ldr cannot be combined with --gamma or --exposure")
    if args.stdout and args.output is not None:
        parser.error("--stdout cannot be combined with an output path")
    if not args.stdout and args.output is None:
        parser.error("an output path or --stdout is required")

    # Progress goes to stderr when stdout carries the image.
    def log(message):
        print(message, file=sys.stderr if args.stdout else sys.stdout)

    try:
        run_render(args, log=log)
    except (SceneError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def run_ui():
    """Entry point for minirt-ui command."""
    return main(["--ui"])


if __name__ == "__main__":
    sys.exit(main())
