"""
Plot playtest results: learning curves plus how the difficulty controller
responded (skill rating, spawn interval, final flow state).
"""

import os
import argparse
from typing import Dict, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

FLOW_ORDER = ["boredom", "neutral", "flow", "anxiety"]
FLOW_COLORS = {"boredom": "#95a5a6", "neutral": "#f1c40f", "flow": "#3498db", "anxiety": "#e74c3c"}
ALGO_COLORS = {"dqn": "#2ecc71", "ppo": "#3498db"}


def load_metrics(log_dir: str, algo: str) -> Optional[pd.DataFrame]:
    """Load metrics CSV for an algorithm."""
    for csv_path in (os.path.join(log_dir, algo, f"{algo}_metrics.csv"),
                     os.path.join(log_dir, f"{algo}_metrics.csv")):
        if os.path.exists(csv_path):
            return pd.read_csv(csv_path)
    return None


def smooth(data: np.ndarray, window: int = 10) -> np.ndarray:
    """Apply rolling average smoothing."""
    if len(data) < window:
        return data
    kernel = np.ones(window) / window
    return np.convolve(data, kernel, mode="valid")


def flow_distribution(df: pd.DataFrame) -> pd.Series:
    """Share of episodes ending in each flow state, in canonical order"""
    counts = df["flow_state"].value_counts(normalize=True)
    return counts.reindex(FLOW_ORDER, fill_value=0.0)


def _plot_smoothed(ax, df: pd.DataFrame, column: str, window: int, **kwargs):
    values = df[column].values.astype(float)
    smoothed = smooth(values, window)
    ax.plot(df["timestep"].values[:len(smoothed)], smoothed, linewidth=2, **kwargs)


def plot_learning_curve(
    df: pd.DataFrame,
    algo: str,
    output_dir: str,
    window: int = 50,
):
    """Reward, dodges/hits, skill rating and spawn interval over training."""
    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle(f"{algo.upper()} Playtest Curves", fontsize=16, fontweight="bold")

    ax = axes[0, 0]
    _plot_smoothed(ax, df, "reward", window, label=f"{algo} (smoothed)")
    ax.set_xlabel("Timesteps")
    ax.set_ylabel("Episode Reward")
    ax.set_title("Episode Reward vs Timesteps")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[0, 1]
    _plot_smoothed(ax, df, "dodged", window, color="green", label="dodged")
    _plot_smoothed(ax, df, "hits", window, color="red", label="hits")
    _plot_smoothed(ax, df, "near_misses", window, color="orange", label="near misses")
    ax.set_xlabel("Timesteps")
    ax.set_ylabel("Count per Episode")
    ax.set_title("Dodges, Hits and Near Misses")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1, 0]
    _plot_smoothed(ax, df, "skill_rating", window, color="purple")
    ax.set_xlabel("Timesteps")
    ax.set_ylabel("Final Skill Rating")
    ax.set_title("Skill Rating at Episode End")
    ax.set_ylim(0, 100)
    ax.grid(True, alpha=0.3)

    ax = axes[1, 1]
    _plot_smoothed(ax, df, "spawn_interval_ms", window, color="brown")
    ax.set_xlabel("Timesteps")
    ax.set_ylabel("Spawn Interval (ms)")
    ax.set_title("Spawn Interval at Episode End")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    os.makedirs(output_dir, exist_ok=True)
    save_path = os.path.join(output_dir, f"{algo}_playtest_curves.png")
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close()

    print(f"Saved {algo} playtest curves to {save_path}")
    return save_path


def plot_flow_states(
    data: Dict[str, pd.DataFrame],
    output_dir: str,
):
    """Stacked bars: which flow state each agent's episodes ended in."""
    algos = [a for a, df in data.items() if df is not None and len(df) > 0]
    fig, ax = plt.subplots(figsize=(8, 6))

    bottom = np.zeros(len(algos))
    for state in FLOW_ORDER:
        shares = np.array([flow_distribution(data[a])[state] for a in algos])
        ax.bar([a.upper() for a in algos], shares, bottom=bottom,
               label=state, color=FLOW_COLORS[state])
        bottom += shares

    ax.set_ylabel("Share of Episodes")
    ax.set_ylim(0, 1.0)
    ax.set_title("Final Flow State Distribution")
    ax.legend()
    ax.grid(True, axis="y", alpha=0.3)

    plt.tight_layout()

    os.makedirs(output_dir, exist_ok=True)
    save_path = os.path.join(output_dir, "flow_states.png")
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close()

    print(f"Saved flow-state plot to {save_path}")
    return save_path


def plot_comparison(
    data: Dict[str, pd.DataFrame],
    output_dir: str,
    window: int = 50,
):
    """Reward and skill rating of all algorithms side by side."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle("Algorithm Comparison", fontsize=16, fontweight="bold")

    for ax, column, title in ((axes[0], "reward", "Episode Reward"),
                              (axes[1], "skill_rating", "Final Skill Rating")):
        for algo, df in data.items():
            if df is not None and len(df) > 0:
                _plot_smoothed(ax, df, column, window, label=algo.upper(),
                               color=ALGO_COLORS.get(algo))
        ax.set_xlabel("Timesteps")
        ax.set_ylabel(title)
        ax.set_title(f"{title} Comparison")
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()

    os.makedirs(output_dir, exist_ok=True)
    save_path = os.path.join(output_dir, "algorithm_comparison.png")
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close()

    print(f"Saved comparison plot to {save_path}")
    return save_path


def generate_summary_report(data: Dict[str, pd.DataFrame], output_dir: str):
    """Generate a text summary report."""
    report_lines = [
        "=" * 60,
        "PLAYTEST SUMMARY REPORT",
        "=" * 60,
        "",
    ]

    for algo, df in data.items():
        if df is None or len(df) == 0:
            continue
        final = df.tail(100)
        flows = flow_distribution(final)
        report_lines.append(f"\n{algo.upper()} Results:")
        report_lines.append("-" * 40)
        report_lines.append(f"  Total Episodes: {len(df)}")
        report_lines.append(f"  Total Timesteps: {df['timestep'].max():,}")
        report_lines.append(f"  Mean Reward: {df['reward'].mean():.2f} ± {df['reward'].std():.2f}")
        report_lines.append(f"\n  Final Performance (last 100 episodes):")
        report_lines.append(f"    Mean Reward: {final['reward'].mean():.2f} ± {final['reward'].std():.2f}")
        report_lines.append(f"    Mean Dodged: {final['dodged'].mean():.1f}")
        report_lines.append(f"    Mean Hits: {final['hits'].mean():.1f}")
        report_lines.append(f"    Mean Skill Rating: {final['skill_rating'].mean():.1f}")
        report_lines.append(f"    Mean Spawn Interval: {final['spawn_interval_ms'].mean():.0f} ms")
        report_lines.append(f"    Survival Rate: {final['survived'].mean():.2%}")
        report_lines.append("    Flow States: " + ", ".join(f"{s} {flows[s]:.0%}" for s in FLOW_ORDER))

    report_lines.append("\n" + "=" * 60)

    report = "\n".join(report_lines)
    print(report)

    os.makedirs(output_dir, exist_ok=True)
    report_path = os.path.join(output_dir, "playtest_summary.txt")
    with open(report_path, "w") as f:
        f.write(report)

    print(f"\nSaved summary report to {report_path}")
    return report_path


def main():
    parser = argparse.ArgumentParser(description="Plot playtest results")
    parser.add_argument(
        "--log-dir",
        type=str,
        default="./logs",
        help="Directory containing log files",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="./plots",
        help="Directory to save plots",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=50,
        help="Smoothing window size (default: 50)",
    )
    parser.add_argument(
        "--algos",
        nargs="+",
        default=["dqn", "ppo"],
        help="Algorithms to plot",
    )

    args = parser.parse_args()

    print(f"Loading metrics from {args.log_dir}...")

    data = {}
    for algo in args.algos:
        df = load_metrics(args.log_dir, algo)
        if df is not None:
            print(f"  Loaded {algo}: {len(df)} episodes")
        else:
            print(f"  No data found for {algo}")
        data[algo] = df

    if not any(d is not None for d in data.values()):
        print("\nNo data found! Make sure training has generated metrics files.")
        return

    for algo, df in data.items():
        if df is not None:
            plot_learning_curve(df, algo, args.output_dir, args.window)

    plot_flow_states(data, args.output_dir)

    if sum(1 for d in data.values() if d is not None) > 1:
        plot_comparison(data, args.output_dir, args.window)

    generate_summary_report(data, args.output_dir)

    print(f"\nAll plots saved to {args.output_dir}/")


if __name__ == "__main__":
    main()
