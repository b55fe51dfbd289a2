"""Main entry point for the boid simulation."""

import argparse
import logging
import math

from config import DEFAULT_PARAMETERS, Parameters, SimulationConfig
from flock import Flock
from surface import RecordingSurface

# CLI flag -> tunable name
PARAMETER_FLAGS = {
    'sight_distance': 'sightDistance',
    'max_speed': 'maxSpeed',
    'min_wall_distance': 'minWallDistance',
    'wall_avoidance_damping': 'wallAvoidanceDamping',
    'separation_distance': 'separationDistance',
    'cohesion_damping': 'cohesionDamping',
}


def build_parser():
    parser = argparse.ArgumentParser(description='Run a boid flocking simulation')
    parser.add_argument('--num-boids', type=int, default=200, help='Number of boids')
    parser.add_argument('--frames', type=int, default=500, help='Number of frames to simulate (save/headless)')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--width', type=float, default=800.0, help='Plane width')
    parser.add_argument('--height', type=float, default=600.0, help='Plane height')
    parser.add_argument('--save', type=str, default=None, help='Save animation to file (e.g., boids.mp4 or boids.gif)')
    parser.add_argument('--snapshot', action='store_true', help='Just save a single snapshot instead of animating')
    parser.add_argument('--headless', action='store_true', help='Run without a window and print a summary')
    parser.add_argument('--log-level', type=str, default='WARNING', help='Logging level (DEBUG, INFO, ...)')

    tunables = parser.add_argument_group('tunables')
    for dest, name in PARAMETER_FLAGS.items():
        tunables.add_argument(
            '--' + dest.replace('_', '-'),
            dest=dest,
            type=float,
            default=DEFAULT_PARAMETERS[name],
            help=f'{name} (default: {DEFAULT_PARAMETERS[name]})'
        )
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.num_boids < 0:
        parser.error('--num-boids must be >= 0')
    if args.width <= 0 or args.height <= 0:
        parser.error('--width and --height must be positive')
    for dest in PARAMETER_FLAGS:
        value = getattr(args, dest)
        flag = '--' + dest.replace('_', '-')
        if not math.isfinite(value):
            parser.error(f'{flag} must be a finite number')
        if value < 0:
            parser.error(f'{flag} must be >= 0')
    return args


def build_config(args) -> SimulationConfig:
    config = SimulationConfig()
    config.num_boids = args.num_boids
    config.seed = args.seed
    config.world_width = args.width
    config.world_height = args.height
    return config


def build_parameters(args) -> Parameters:
    return Parameters(**{name: getattr(args, dest) for dest, name in PARAMETER_FLAGS.items()})


def run_headless(config: SimulationConfig, parameters: Parameters, num_frames: int) -> Flock:
    """Advance a flock on an in-memory surface at a fixed frame time."""
    surface = RecordingSurface(config.world_width, config.world_height)
    flock = Flock(surface, config.num_boids, parameters, seed=config.seed)
    for _ in range(num_frames):
        flock.step(config.frame_interval_ms)
    return flock


def main(argv=None):
    """Run the boid simulation."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )

    config = build_config(args)
    parameters = build_parameters(args)

    print(f"Initializing simulation with {config.num_boids} boids...")
    print(f"World size: {config.world_width} x {config.world_height}")
    print(f"Sight distance: {parameters.get('sightDistance')}")
    print(f"Separation distance: {parameters.get('separationDistance')}")
    print(f"Max speed: {parameters.get('maxSpeed')}")

    if args.headless:
        print(f"Simulating {args.frames} frames...")
        flock = run_headless(config, parameters, args.frames)
        stats = flock.stats()
        print(f"Frames: {stats.frames}")
        print(f"Mean speed: {stats.mean_speed:.3f} (max {stats.max_speed:.3f})")
        print(f"Mean closest distance: {stats.mean_closest_distance:.3f}")
        print(f"Centroid: ({stats.centroid[0]:.1f}, {stats.centroid[1]:.1f})")
        return

    # Imported here so headless runs never touch a display backend
    from visualize import BoidVisualizer, plot_single_frame

    visualizer = BoidVisualizer(config, parameters)

    if args.snapshot:
        # Advance --frames frames so agents have a color, then save
        for _ in range(args.frames):
            visualizer.flock.step(config.frame_interval_ms)
        snapshot_path = args.save or 'boid_snapshot.png'
        plot_single_frame(visualizer.flock, save_path=snapshot_path)
    elif args.save:
        # Save animation to file
        print(f"Rendering {args.frames} frames...")
        visualizer.save_animation(args.save, num_frames=args.frames, fps=config.fps)
    else:
        # Interactive animation
        print("Starting interactive animation...")
        print("Close the window to exit.")
        visualizer.run()


if __name__ == '__main__':
    main()
