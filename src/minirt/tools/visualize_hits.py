import argparse
import math

import matplotlib.pyplot as plt

from minirt.loader import load_scene

# Distinct colors for top-level objects (cycled)
OBJECT_COLORS = [
    [1.0, 0.2, 0.2],  # Red
    [0.2, 0.7, 0.2],  # Green
    [0.2, 0.2, 1.0],  # Blue
    [1.0, 0.6, 0.0],  # Orange
    [1.0, 0.2, 1.0],  # Magenta
    [0.2, 0.8, 0.8],  # Cyan
]


def hit_intervals(hits):
    """
    Pair a sorted hit list into the spans the ray spends inside the solid.

    A span left open by a missing exit extends to infinity.
    """
    spans = []
    start = None
    depth = 0
    for hit in hits:
        if hit.is_front_face:
            if depth == 0:
                start = hit.distance
            depth += 1
        elif depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((start, hit.distance))
    if depth > 0:
        spans.append((start, math.inf))
    return spans


def plot_hit_intervals(scene, x, y, ax=None):
    """
    Draw the solid spans of every top-level object along the ray through (x, y).

    Infinite spans are cut at the plot's right edge. The nearest hit chosen by
    the scene is marked with a dashed line.
    """
    ray = scene.camera.ray(x, y)
    per_object = [hit_intervals(surface.test(ray)) for surface in scene.objects]

    finite_ends = [e for spans in per_object for s, e in spans if math.isfinite(e)]
    finite_ends += [s for spans in per_object for s, e in spans]
    limit = max(finite_ends, default=1.0) * 1.2 or 1.0

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 1 + 0.5 * max(1, len(per_object))))
    else:
        fig = ax.figure

    for index, spans in enumerate(per_object):
        color = OBJECT_COLORS[index % len(OBJECT_COLORS)]
        bars = [(s, min(e, limit) - s) for s, e in spans]
        ax.broken_barh(bars, (index - 0.4, 0.8), facecolors=color)

    nearest = scene.test(ray)
    if nearest is not None and math.isfinite(nearest.distance):
        ax.axvline(nearest.distance, color="black", linestyle="--", label="nearest hit")
        ax.legend(loc="upper right")

    ax.set_xlim(0.0, limit)
    ax.set_yticks(range(len(per_object)))
    ax.set_yticklabels([type(surface).__name__ for surface in scene.objects])
    ax.set_xlabel("Distance along ray")
    ax.set_title(f"Hit intervals at screen ({x:.3f}, {y:.3f})")
    return fig


def main(argv=None):
    parser = argparse.ArgumentParser(description="Plot hit intervals along one primary ray")
    parser.add_argument("scene", help="Scene document")
    parser.add_argument("x", type=float, help="Screen x in [0, 1]")
    parser.add_argument("y", type=float, help="Screen y in [0, 1]")
    parser.add_argument("--output", help="Save the figure instead of showing it")
    args = parser.parse_args(argv)

    fig = plot_hit_intervals(load_scene(args.scene), args.x, args.y)
    if args.output:
        fig.savefig(args.output)
        print(f"Saved {args.output}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
