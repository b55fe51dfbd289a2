"""Visualization utilities for the boid simulation."""

import math

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.collections import PolyCollection

from config import SimulationConfig
from flock import Flock
from surface import hsl_to_rgb

DPI = 100


class MatplotlibSurface:
    """Render surface backed by a full-figure matplotlib axes.

    Axes coordinates are display pixels with the origin at the top left, and
    the limits follow the canvas on every resize, so ``width`` and ``height``
    always report the current drawable size.
    """

    def __init__(self, fig, background: str = 'black'):
        self.fig = fig
        self.ax = fig.add_axes([0, 0, 1, 1])
        self.ax.set_axis_off()
        fig.set_facecolor(background)
        self.ax.set_facecolor(background)

        self.collection = PolyCollection([], linewidths=0)
        self.ax.add_collection(self.collection)
        self._verts = []
        self._colors = []

        self._sync_limits()
        fig.canvas.mpl_connect('resize_event', self._on_resize)

    @property
    def width(self) -> float:
        return self.fig.bbox.width

    @property
    def height(self) -> float:
        return self.fig.bbox.height

    def _sync_limits(self):
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(self.height, 0)

    def _on_resize(self, event):
        self._sync_limits()

    def clear(self):
        self._verts = []
        self._colors = []

    def fill_rect(self, x, y, w, h, color):
        self._verts.append([(x, y), (x + w, y), (x + w, y + h), (x, y + h)])
        self._colors.append(hsl_to_rgb(color))

    def flush(self):
        """Push the rects drawn since the last clear to the artist."""
        self.collection.set_verts(self._verts)
        self.collection.set_facecolor(self._colors)
        return self.collection


class TimerScheduler:
    """Scheduler built on single-shot canvas timers.

    Each requested callback runs once; the surface is then flushed and the
    canvas redrawn.
    """

    def __init__(self, fig, surface: MatplotlibSurface, interval_ms: float):
        self.fig = fig
        self.surface = surface
        # Never fire faster than the flock's throttle or every other tick is dropped
        self.interval_ms = max(1, math.ceil(interval_ms))
        self._timer = None

    def request_frame(self, callback):
        timer = self.fig.canvas.new_timer(interval=self.interval_ms)
        timer.single_shot = True
        timer.add_callback(self._run, callback)
        timer.start()
        # Keep a reference, an unreferenced timer may be garbage collected
        self._timer = timer

    def _run(self, callback):
        callback()
        self.surface.flush()
        self.fig.canvas.draw_idle()


class BoidVisualizer:
    """Visualizer for boid simulation using matplotlib."""

    def __init__(self, config: SimulationConfig, parameters):
        """Initialize the visualizer.

        Args:
            config: Simulation configuration
            parameters: Live tunables shared with every agent
        """
        self.config = config
        self.fig = plt.figure(
            figsize=(config.world_width / DPI, config.world_height / DPI),
            dpi=DPI
        )
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title('Boid Simulation')

        self.surface = MatplotlibSurface(self.fig)
        self.frame_elapsed_ms = 1000.0 / config.fps
        self.scheduler = TimerScheduler(self.fig, self.surface, config.frame_interval_ms)
        self.flock = Flock(
            self.surface,
            config.num_boids,
            parameters,
            seed=config.seed,
            scheduler=self.scheduler,
            frame_interval_ms=config.frame_interval_ms
        )

    def run(self):
        """Run the self-rescheduling loop until the window is closed."""
        self.flock.start()
        try:
            plt.show()
        finally:
            self.flock.stop()

    def animate(self, num_frames: int = 500, fps: int = 60):
        """Create an animation advancing the flock at a fixed frame time.

        Args:
            num_frames: Number of frames to animate
            fps: Frames per second; each frame advances ``1000 / fps`` ms

        Returns:
            matplotlib animation object
        """
        self.frame_elapsed_ms = 1000.0 / fps

        anim = FuncAnimation(
            self.fig,
            self.update_frame,
            init_func=self.init_frame,
            frames=num_frames,
            interval=self.frame_elapsed_ms,
            blit=False
        )

        return anim

    def init_frame(self):
        """Draw the current state without advancing the flock."""
        return (self.surface.flush(),)

    def update_frame(self, frame):
        """Update function for animation."""
        self.flock.step(self.frame_elapsed_ms)
        return (self.surface.flush(),)

    def show(self):
        """Display the plot."""
        plt.show()

    def save_animation(self, filename: str, num_frames: int = 500, fps: int = 60):
        """Save animation to file.

        Args:
            filename: Output filename (e.g., 'boids.mp4' or 'boids.gif')
            num_frames: Number of frames to render
            fps: Frames per second
        """
        anim = self.animate(num_frames=num_frames, fps=fps)

        # Determine writer based on file extension
        if filename.endswith('.gif'):
            writer = 'pillow'
        else:
            writer = 'ffmpeg'

        anim.save(filename, writer=writer, fps=fps)
        print(f"Animation saved to {filename}")


def plot_single_frame(flock: Flock, save_path: str = None):
    """Plot the current state of a flock.

    Agents are drawn in their render color, with a short heading tick.

    Args:
        flock: Flock to draw
        save_path: Optional path to save the figure
    """
    width, height = flock.surface.width, flock.surface.height
    fig, ax = plt.subplots(figsize=(width / DPI, height / DPI), dpi=DPI)
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_aspect('equal')
    ax.set_title(f'Boid Simulation - Frame {flock.frame_count}')

    if flock.agents:
        positions = np.array([agent.position for agent in flock.agents])
        velocities = np.array([agent.velocity for agent in flock.agents])
        colors = [hsl_to_rgb(agent.color()) for agent in flock.agents]

        ax.scatter(positions[:, 0], positions[:, 1], c=colors, s=9, marker='s')
        ax.quiver(
            positions[:, 0], positions[:, 1],
            velocities[:, 0], velocities[:, 1],
            color=colors, angles='xy', alpha=0.5
        )

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Figure saved to {save_path}")
    else:
        plt.show()

    plt.close(fig)
