"""
Callbacks that record playtest metrics during training.
Records per episode: coins dodged, hits taken, near misses, final skill rating,
final flow state, spawn interval and survival.
"""

import os
import csv
from typing import Dict, List, Any, Optional

import numpy as np
from stable_baselines3.common.callbacks import BaseCallback

CSV_HEADER = [
    "timestep", "episode", "reward", "length",
    "dodged", "hits", "near_misses", "skill_rating",
    "flow_state", "spawn_interval_ms", "survived",
]


def episode_row(timestep: int, episode: int, ep_reward: float, ep_length: int,
                info: Dict[str, Any]) -> List[Any]:
    """One CSV row from the terminal step's info dict"""
    return [
        timestep,
        episode,
        ep_reward,
        ep_length,
        info.get("coins_dodged", 0),
        info.get("coins_hit", 0),
        info.get("near_misses", 0),
        info.get("skill_rating", 50.0),
        info.get("flow_state", "neutral"),
        info.get("spawn_interval_ms", 0.0),
        1.0 if info.get("health", 0) > 0 else 0.0,
    ]


class MetricsCallback(BaseCallback):
    """
    Tracks playtest metrics per episode and saves them to CSV for plotting.
    """

    def __init__(
        self,
        log_dir: str,
        algo_name: str,
        verbose: int = 1,
    ):
        super().__init__(verbose)
        self.log_dir = log_dir
        self.algo_name = algo_name

        self.episode_rewards: List[float] = []
        self.episode_lengths: List[int] = []
        self.episode_dodged: List[float] = []
        self.episode_hits: List[float] = []
        self.episode_skill: List[float] = []
        self.episode_flow: List[str] = []

        self.csv_path: Optional[str] = None
        self.csv_file = None
        self.csv_writer = None

    def _on_training_start(self) -> None:
        os.makedirs(self.log_dir, exist_ok=True)
        self.csv_path = os.path.join(self.log_dir, f"{self.algo_name}_metrics.csv")

        self.csv_file = open(self.csv_path, "w", newline="")
        self.csv_writer = csv.writer(self.csv_file)
        self.csv_writer.writerow(CSV_HEADER)
        self.csv_file.flush()

        if self.verbose > 0:
            print(f"[MetricsCallback] Logging to {self.csv_path}")

    def _on_step(self) -> bool:
        infos = self.locals.get("infos", [])
        dones = self.locals.get("dones", [])

        for info, done in zip(infos, dones):
            # Monitor adds "episode" on the terminal step
            if not (done and "episode" in info):
                continue
            ep_info = info["episode"]
            self.record_episode(ep_info["r"], ep_info["l"], info)

        return True

    def record_episode(self, ep_reward: float, ep_length: int, info: Dict[str, Any]):
        self.episode_rewards.append(ep_reward)
        self.episode_lengths.append(ep_length)
        self.episode_dodged.append(info.get("coins_dodged", 0))
        self.episode_hits.append(info.get("coins_hit", 0))
        self.episode_skill.append(info.get("skill_rating", 50.0))
        self.episode_flow.append(info.get("flow_state", "neutral"))

        if self.csv_writer:
            self.csv_writer.writerow(
                episode_row(self.num_timesteps, len(self.episode_rewards), ep_reward, ep_length, info))
            self.csv_file.flush()

        if self.verbose > 0 and len(self.episode_rewards) % 10 == 0:
            avg_reward = sum(self.episode_rewards[-10:]) / 10
            avg_skill = sum(self.episode_skill[-10:]) / 10
            print(f"[{self.algo_name}] Episode {len(self.episode_rewards)}, "
                  f"Timestep {self.num_timesteps}, "
                  f"Avg Reward (10 ep): {avg_reward:.2f}, Avg Skill: {avg_skill:.1f}")

    def _on_training_end(self) -> None:
        if self.csv_file:
            self.csv_file.close()
            if self.verbose > 0:
                print(f"[MetricsCallback] Saved {len(self.episode_rewards)} episodes to {self.csv_path}")

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        if not self.episode_rewards:
            return {}

        return {
            "mean_reward": np.mean(self.episode_rewards),
            "std_reward": np.std(self.episode_rewards),
            "mean_length": np.mean(self.episode_lengths),
            "total_episodes": len(self.episode_rewards),
            "mean_dodged": np.mean(self.episode_dodged),
            "mean_hits": np.mean(self.episode_hits),
            "mean_skill": np.mean(self.episode_skill),
            "flow_share": self.episode_flow.count("flow") / len(self.episode_flow),
        }


class TensorboardMetricsCallback(BaseCallback):
    """
    Logs the difficulty controller's end-of-episode state to TensorBoard.
    """

    def __init__(self, verbose: int = 0):
        super().__init__(verbose)
        self._episode_rewards = []

    def _on_step(self) -> bool:
        infos = self.locals.get("infos", [])
        dones = self.locals.get("dones", [])

        for info, done in zip(infos, dones):
            if done and "episode" in info:
                ep = info["episode"]
                self._episode_rewards.append(ep["r"])

                if self.logger:
                    self.logger.record("playtest/episode_reward", ep["r"])
                    self.logger.record("playtest/episode_length", ep["l"])
                    for key in ("coins_dodged", "coins_hit", "near_misses",
                                "skill_rating", "spawn_interval_ms", "health"):
                        if key in info:
                            self.logger.record(f"playtest/{key}", info[key])

        return True
