# =============================================================================
# SIMULATION - Layer Coordinator
# =============================================================================
# Runs a lane select scenario coordinating:
# - L3: World Model Layer (lanes, lane following vehicle)
# - L5: Decision Layer (lane select node, includes L4 localization)
# - A behavior commander standing in for the upstream state machine
# =============================================================================

import numpy as np
import sys
import os
import argparse
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.patches import FancyArrow
from matplotlib.widgets import Button
import pandas as pd
import json
import logging
from datetime import datetime
from typing import Optional

sys.stdout.reconfigure(encoding='utf-8')

# Import layers
from L3_world import (
    WorldModel,
    ScenarioPresets,
    DEFAULT_DT,
    DEFAULT_SIMULATION_STEPS,
    DEFAULT_VEHICLE_SPEED
)
from L5_decision import (
    ChangeFlag,
    LaneSelectConfig,
    LaneSelectLayer,
    MarkerKind,
    RecordingPublisher,
    SelectorState
)
from utils import set_level

SCENARIOS = {
    'single': ScenarioPresets.scenario_single_lane,
    'right': ScenarioPresets.scenario_right_change,
    'left': ScenarioPresets.scenario_left_change
}


# =============================================================================
# Behavior Commander
# =============================================================================
class BehaviorCommander:
    """
    Minimal upstream state machine.

    Commands LANE_CHANGE as soon as a change is offered and prepared, and
    MOVE_FORWARD again once the blend lane reports STRAIGHT.
    """

    def __init__(self):
        self.state = SelectorState.MOVE_FORWARD

    def reset(self):
        self.state = SelectorState.MOVE_FORWARD

    def decide(self, layer: LaneSelectLayer, flag: ChangeFlag) -> Optional[str]:
        """Return a new command string, or None to keep the current one."""
        if (self.state == SelectorState.MOVE_FORWARD and flag.is_change
                and not layer.lane_for_change.is_empty):
            self.state = SelectorState.LANE_CHANGE
            return self.state.value
        if (self.state == SelectorState.LANE_CHANGE
                and layer.last_tick_state == SelectorState.LANE_CHANGE
                and flag == ChangeFlag.STRAIGHT):
            self.state = SelectorState.MOVE_FORWARD
            return self.state.value
        return None


# =============================================================================
# Metrics
# =============================================================================
class LaneSelectMetrics:
    """Metrics calculation module for a scenario run."""

    def __init__(self):
        self.records = []
        self.commands = []

    def record_tick(self, row: dict):
        self.records.append(row)

    def record_command(self, time: float, command: str):
        self.commands.append({'time': time, 'command': command})

    def compute_metrics(self) -> dict:
        metrics = {}
        if not self.records:
            return metrics

        df = pd.DataFrame(self.records)
        metrics['ticks'] = int(len(df))
        metrics['lost_ticks'] = int((df['closest_waypoint'] < 0).sum())
        metrics['lane_changes'] = int(sum(1 for c in self.commands
                                          if c['command'] == SelectorState.LANE_CHANGE.value))
        metrics['lateral_offset'] = {
            'start': float(df['y'].iloc[0]),
            'end': float(df['y'].iloc[-1]),
            'max_abs': float(df['y'].abs().max())
        }
        metrics['speed'] = {
            'mean': float(df['speed'].mean()),
            'max': float(df['speed'].max())
        }
        metrics['change_flags'] = {
            ChangeFlag(int(code)).name: int(count)
            for code, count in df['change_flag'].value_counts().items()
        }
        return metrics

    def export_to_json(self, filename: str) -> dict:
        metrics = self.compute_metrics()
        output = {
            'timestamp': datetime.now().isoformat(),
            'metrics': metrics,
            'commands': self.commands
        }
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False, default=str)
        return metrics


# =============================================================================
# Simulation Controller
# =============================================================================
class SimulationController:
    """
    Main controller that coordinates world, lane select layer and commander.
    """

    def __init__(self, scenario: str = 'right', dt: float = DEFAULT_DT,
                 steps: int = DEFAULT_SIMULATION_STEPS,
                 speed: float = DEFAULT_VEHICLE_SPEED,
                 config: Optional[LaneSelectConfig] = None):
        self.dt = dt
        self.steps = steps
        self.scenario = scenario

        # Layer 3: World Model
        self.world = WorldModel(dt=dt, vehicle_speed=speed)

        # Layer 5: Decision (includes L4 localization internally)
        self.publisher = RecordingPublisher()
        self.layer = LaneSelectLayer(config=config, publisher=self.publisher)
        self.commander = BehaviorCommander()

        self.metrics = LaneSelectMetrics()
        self.reset_scenario(scenario)

    def reset_scenario(self, scenario: str):
        """Resets and configures a scenario."""
        if scenario not in SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}")
        self.scenario = scenario
        self.metrics = LaneSelectMetrics()
        self.publisher.clear()
        self.layer.reset()
        self.commander.reset()

        info = SCENARIOS[scenario](self.world)
        self.layer.on_state(self.commander.state.value)
        self.layer.on_lane_array(self.world.lanes)

        print(f"\n{'='*60}")
        print(f"Scenario {scenario} initialized: {info}")
        print(f"{'='*60}\n")
        return info

    def step(self, frame: int) -> dict:
        """
        Executes one simulation step.

        Returns:
            Dictionary with all current frame data
        """
        lane = self.publisher.last_lane
        closest = self.publisher.last_closest_waypoint
        world_state = self.world.update(lane, closest if closest >= 0 else None)

        self.layer.on_pose(world_state['pose'])
        self.layer.on_velocity(world_state['velocity'])

        flag = self.publisher.last_change_flag
        command = self.commander.decide(self.layer, flag)
        if command is not None:
            self.metrics.record_command(world_state['time'], command)
            self.layer.on_state(command)
            flag = self.publisher.last_change_flag

        pose = world_state['pose']
        row = {
            'time': world_state['time'],
            'frame': frame,
            'x': pose.x,
            'y': pose.y,
            'yaw': pose.yaw,
            'speed': world_state['velocity'],
            'state': self.layer.state.value,
            'current_lane_id': self.layer.registry.current_lane_id,
            'right_lane_id': self.layer.registry.right_lane_id,
            'left_lane_id': self.layer.registry.left_lane_id,
            'closest_waypoint': self.publisher.last_closest_waypoint,
            'change_flag': int(flag),
            'lane_for_change_size': len(self.layer.lane_for_change.lane)
        }
        self.metrics.record_tick(row)

        return {
            **world_state,
            'row': row,
            'markers': self.publisher.marker_arrays[-1] if self.publisher.marker_arrays else []
        }

    def run(self) -> dict:
        """Run all steps without visualization."""
        for frame in range(self.steps):
            self.step(frame)
        return self.metrics.compute_metrics()

    def save_logs(self, base_log_dir: str = "log") -> dict:
        """Saves logs and metrics to files in organized subfolders."""
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        tick_log_dir = os.path.join(base_log_dir, "tick_log")
        metrics_dir = os.path.join(base_log_dir, "metrics")
        state_dir = os.path.join(base_log_dir, "system_state")

        for directory in [tick_log_dir, metrics_dir, state_dir]:
            os.makedirs(directory, exist_ok=True)

        # CSV - Tick Log
        if self.metrics.records:
            df = pd.DataFrame(self.metrics.records)
            csv_file = os.path.join(tick_log_dir, f"tick_log_{self.scenario}_{timestamp}.csv")
            df.to_csv(csv_file, index=False, encoding='utf-8')
            print(f"Log saved: {csv_file}")

        # JSON - Metrics
        json_file = os.path.join(metrics_dir, f"metrics_{self.scenario}_{timestamp}.json")
        metrics = self.metrics.export_to_json(json_file)
        print(f"Metrics saved: {json_file}")

        # JSON - System State
        state_file = os.path.join(state_dir, f"system_state_{self.scenario}_{timestamp}.json")
        with open(state_file, 'w', encoding='utf-8') as f:
            json.dump(self.layer.export_state(), f, indent=2, ensure_ascii=False, default=str)
        print(f"System state saved: {state_file}")

        # Print summary
        print(f"\n{'='*60}")
        print("METRICS SUMMARY")
        print(f"{'='*60}")
        if metrics:
            print(f"Ticks: {metrics['ticks']}  Lost: {metrics['lost_ticks']}")
            print(f"Lane changes: {metrics['lane_changes']}")
            print(f"Final lateral offset: {metrics['lateral_offset']['end']:.2f} m")
        print(f"{'='*60}\n")
        return metrics


# =============================================================================
# Visualization
# =============================================================================
class SimulationVisualizer:
    """
    Simulation visualization with matplotlib.
    """

    def __init__(self, controller: SimulationController, log_dir: str = "log"):
        self.controller = controller
        self.log_dir = log_dir

        # Setup figure
        self.fig = plt.figure(figsize=(16, 8))
        gs = self.fig.add_gridspec(2, 1, height_ratios=[3, 1], hspace=0.3,
                                   left=0.06, right=0.97, top=0.95, bottom=0.12)
        self.ax_main = self.fig.add_subplot(gs[0])
        self.ax_info = self.fig.add_subplot(gs[1])

        # Buttons
        ax_btn1 = plt.axes([0.20, 0.01, 0.18, 0.04])
        ax_btn2 = plt.axes([0.41, 0.01, 0.18, 0.04])
        ax_btn3 = plt.axes([0.62, 0.01, 0.18, 0.04])

        self.btn1 = Button(ax_btn1, 'Single lane', color='lightyellow')
        self.btn2 = Button(ax_btn2, 'Change right', color='lightblue')
        self.btn3 = Button(ax_btn3, 'Change left', color='lightgreen')

        self.btn1.on_clicked(lambda e: self._on_scenario('single'))
        self.btn2.on_clicked(lambda e: self._on_scenario('right'))
        self.btn3.on_clicked(lambda e: self._on_scenario('left'))

        self.fig.canvas.mpl_connect('close_event', self._on_close)

    def _on_scenario(self, scenario: str):
        self.controller.reset_scenario(scenario)

    def _on_close(self, event):
        print("\n" + "="*60)
        print("SAVING LOGS AND METRICS...")
        print("="*60)
        self.controller.save_logs(self.log_dir)

    def draw_markers(self, markers):
        for marker in markers:
            if not marker.is_visible:
                continue
            pts = marker.points
            if marker.kind == MarkerKind.POINTS:
                self.ax_main.scatter(pts[:, 0], pts[:, 1], s=marker.scale * 60,
                                     color=marker.color[:3], edgecolors='k', zorder=5)
            else:
                self.ax_main.plot(pts[:, 0], pts[:, 1], color=marker.color[:3],
                                  alpha=marker.color[3], linewidth=marker.scale * 25,
                                  label=marker.namespace)

    def animate(self, frame: int):
        """Animation function."""
        data = self.controller.step(frame)
        world = self.controller.world
        row = data['row']

        # === Main View ===
        self.ax_main.clear()
        x_min, x_max, y_min, y_max = world.bounds()
        self.ax_main.set_xlim(x_min, x_max)
        self.ax_main.set_ylim(y_min, y_max)
        self.ax_main.set_aspect('equal')
        self.ax_main.grid(True, alpha=0.25, linestyle='--')
        self.ax_main.set_xlabel('X (m)', fontsize=10, fontweight='bold')
        self.ax_main.set_ylabel('Y (m)', fontsize=10, fontweight='bold')

        for lane in world.lanes:
            pts = lane.positions()
            self.ax_main.plot(pts[:, 0], pts[:, 1], color='lightgray', linewidth=6, zorder=0)
            flagged = np.array([ChangeFlag(wp.change_flag).is_change for wp in lane.waypoints])
            if flagged.any():
                self.ax_main.scatter(pts[flagged, 0], pts[flagged, 1], s=6, color='orange', zorder=1)

        self.draw_markers(data['markers'])

        if world.vehicle_trajectory:
            traj = np.array(world.vehicle_trajectory)
            self.ax_main.plot(traj[:, 0], traj[:, 1], 'k--', linewidth=1)
        pose = data['pose']
        self.ax_main.add_patch(FancyArrow(pose.x, pose.y,
                                          2.0 * np.cos(pose.yaw), 2.0 * np.sin(pose.yaw),
                                          width=0.3, color='black', zorder=6))
        self.ax_main.set_title(f"Scenario {self.controller.scenario} | t = {data['time']:.1f} s")

        # === Info Panel ===
        self.ax_info.clear()
        self.ax_info.axis('off')
        info = (f"State: {row['state']}    Lane: {row['current_lane_id']}    "
                f"Right: {row['right_lane_id']}    Left: {row['left_lane_id']}\n"
                f"Closest waypoint: {row['closest_waypoint']}    "
                f"Change flag: {ChangeFlag(row['change_flag']).name}    "
                f"Speed: {row['speed']:.2f} m/s    "
                f"Blend lane: {row['lane_for_change_size']} waypoints")
        self.ax_info.text(0.01, 0.5, info, fontsize=11, family='monospace', va='center')

    def run(self):
        """Starts the animation."""
        ani = animation.FuncAnimation(
            self.fig, self.animate,
            frames=self.controller.steps,
            interval=int(self.controller.dt * 1000), repeat=False
        )
        plt.show()


# =============================================================================
# Argument Parsing
# =============================================================================
def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description='Lane select simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  python simulation.py --scenario right
  python simulation.py --scenario left --speed 8 --headless
"""
    )

    parser.add_argument(
        '--scenario',
        type=str,
        choices=sorted(SCENARIOS.keys()),
        default='right',
        help='Lane scenario: single, right, left (default: right)'
    )

    parser.add_argument(
        '--dt',
        type=float,
        default=DEFAULT_DT,
        metavar='SEC',
        help=f'Simulation time step in seconds (default: {DEFAULT_DT})'
    )

    parser.add_argument(
        '--steps',
        type=int,
        default=DEFAULT_SIMULATION_STEPS,
        metavar='N',
        help=f'Simulation steps (default: {DEFAULT_SIMULATION_STEPS})'
    )

    parser.add_argument(
        '--speed',
        type=float,
        default=DEFAULT_VEHICLE_SPEED,
        metavar='MPS',
        help=f'Vehicle cruise speed in m/s (default: {DEFAULT_VEHICLE_SPEED})'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        metavar='JSON',
        help='JSON file with lane select parameters'
    )

    parser.add_argument(
        '--headless',
        action='store_true',
        help='Run without window and save logs at the end'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        default='log',
        help='Directory for logs and metrics (default: log)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log per-tick lane select diagnostics (DEBUG level)'
    )

    return parser.parse_args(argv)


def load_config(path: Optional[str]) -> LaneSelectConfig:
    """Lane select parameters from a JSON file, defaults if no path."""
    if path is None:
        return LaneSelectConfig()
    with open(path, 'r', encoding='utf-8') as f:
        return LaneSelectConfig.from_dict(json.load(f))


# =============================================================================
# Main Entry Point
# =============================================================================
def main():
    args = parse_arguments()
    if args.verbose:
        set_level(logging.DEBUG)

    print("="*60)
    print("LANE SELECT SIMULATION - LAYERED ARCHITECTURE")
    print("="*60)
    print("LAYERS:")
    print("  L3: World Model Layer  - Lanes, Vehicle")
    print("  L4: Localization Layer - Closest waypoints, Neighbor lanes")
    print("  L5: Decision Layer     - Lane select, Lane change synthesis")

    controller = SimulationController(
        scenario=args.scenario,
        dt=args.dt,
        steps=args.steps,
        speed=args.speed,
        config=load_config(args.config)
    )

    if args.headless:
        controller.run()
        controller.save_logs(args.log_dir)
        return

    print("="*60)
    print("COMMANDS:")
    print("  - Close window to save logs and metrics")
    print("="*60)

    visualizer = SimulationVisualizer(controller, log_dir=args.log_dir)
    visualizer.run()


if __name__ == "__main__":
    main()
