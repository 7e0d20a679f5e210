"""
Evaluate trained playtest agents and report how the difficulty controller reacted
"""

import argparse
import time
from collections import Counter
from typing import Any, Dict, List, Optional

import numpy as np

from stable_baselines3 import PPO, DQN
from stable_baselines3.common.vec_env import DummyVecEnv, VecNormalize

from game.memedodge.dodge_env import DodgeEnv
from rl.configs.dodge_config import ENV_CONFIG, SESSION_CONFIG, REWARD_CONFIGS
from rl.train import MultiDiscreteToDiscreteWrapper


def summarize_episodes(rewards: List[float], lengths: List[int],
                       infos: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Reward statistics plus the end-of-episode difficulty picture"""
    flows = Counter(info.get("flow_state", "neutral") for info in infos)
    return {
        "mean_reward": float(np.mean(rewards)),
        "std_reward": float(np.std(rewards)),
        "mean_length": float(np.mean(lengths)),
        "mean_dodged": float(np.mean([i.get("coins_dodged", 0) for i in infos])),
        "mean_hits": float(np.mean([i.get("coins_hit", 0) for i in infos])),
        "mean_skill": float(np.mean([i.get("skill_rating", 50.0) for i in infos])),
        "survival_rate": float(np.mean([1.0 if i.get("health", 0) > 0 else 0.0 for i in infos])),
        "flow_states": dict(flows),
        "episode_rewards": list(rewards),
        "episode_lengths": list(lengths),
    }


def _print_results(title: str, results: Dict[str, Any]):
    print("\n" + "="*50)
    print(title)
    print(f"Mean Reward: {results['mean_reward']:.2f} ± {results['std_reward']:.2f}")
    print(f"Mean Episode Length: {results['mean_length']:.1f}")
    print(f"Mean Dodged: {results['mean_dodged']:.1f}   Mean Hits: {results['mean_hits']:.1f}")
    print(f"Mean Final Skill: {results['mean_skill']:.1f}   Survival: {results['survival_rate']:.0%}")
    print(f"Final flow states: {results['flow_states']}")
    print("="*50)


def evaluate_model(
    model_path: str,
    algo: str = "ppo",
    n_episodes: int = 10,
    render: bool = True,
    seed: Optional[int] = None,
    vec_normalize_path: Optional[str] = None,
    reward_name: str = "baseline",
):
    """
    Evaluate a trained model

    Args:
        model_path: Path to the saved model
        algo: Algorithm used ('ppo' or 'dqn')
        n_episodes: Number of episodes to evaluate
        render: Whether to render the environment
        seed: Random seed for evaluation
        vec_normalize_path: Path to VecNormalize stats (for PPO)
        reward_name: Reward profile the model was trained with
    """

    if algo == "ppo":
        model = PPO.load(model_path)
    elif algo == "dqn":
        model = DQN.load(model_path)
    else:
        raise ValueError(f"Unknown algorithm: {algo}")

    render_mode = "human" if render else None
    base_env = DodgeEnv(render_mode=render_mode, session_config=SESSION_CONFIG,
                        reward_config=REWARD_CONFIGS[reward_name], **ENV_CONFIG)
    env = MultiDiscreteToDiscreteWrapper(base_env) if algo == "dqn" else base_env
    env = DummyVecEnv([lambda: env])

    if vec_normalize_path:
        env = VecNormalize.load(vec_normalize_path, env)
        env.training = False
        env.norm_reward = False

    episode_rewards = []
    episode_lengths = []
    final_infos = []

    for episode in range(n_episodes):
        if seed is not None:
            env.seed(seed + episode)
        obs = env.reset()

        total_reward = 0.0
        steps = 0

        while True:
            action, _ = model.predict(obs, deterministic=True)
            obs, reward, done, info = env.step(action)
            total_reward += float(reward[0])
            steps += 1

            if render and base_env._window:
                base_env._window.dispatch_events()
                base_env._window.on_draw()
                base_env._window.flip()
                time.sleep(0.03)

            if done[0]:
                final_infos.append(info[0])
                break

        episode_rewards.append(total_reward)
        episode_lengths.append(steps)

        print(f"Episode {episode + 1}/{n_episodes}: "
              f"Reward = {total_reward:.2f}, Length = {steps}, "
              f"Dodged = {final_infos[-1].get('coins_dodged', 0)}, "
              f"Flow = {final_infos[-1].get('flow_state', '?')}")

    env.close()

    results = summarize_episodes(episode_rewards, episode_lengths, final_infos)
    _print_results(f"Evaluation Results ({n_episodes} episodes):", results)
    return results


def compare_with_random(n_episodes: int = 10, seed: Optional[int] = None,
                        reward_name: str = "baseline"):
    """
    Evaluate a random policy baseline
    """
    print("Evaluating random policy baseline...")

    env = DodgeEnv(render_mode=None, session_config=SESSION_CONFIG,
                   reward_config=REWARD_CONFIGS[reward_name], **ENV_CONFIG)
    env.action_space.seed(seed)

    episode_rewards = []
    episode_lengths = []
    final_infos = []

    for episode in range(n_episodes):
        obs, info = env.reset(seed=seed + episode if seed is not None else None)

        terminated = False
        truncated = False
        total_reward = 0.0
        steps = 0

        while not (terminated or truncated):
            action = env.action_space.sample()
            obs, reward, terminated, truncated, info = env.step(action)
            total_reward += reward
            steps += 1

        episode_rewards.append(total_reward)
        episode_lengths.append(steps)
        final_infos.append(info)

    env.close()

    results = summarize_episodes(episode_rewards, episode_lengths, final_infos)
    _print_results(f"Random Policy Results ({n_episodes} episodes):", results)
    return results


def main():
    parser = argparse.ArgumentParser(description="Evaluate a trained playtest agent")
    parser.add_argument(
        "model_path",
        type=str,
        help="Path to the trained model",
    )
    parser.add_argument(
        "--algo",
        type=str,
        default="ppo",
        choices=["ppo", "dqn"],
        help="Algorithm used to train the model (default: ppo)",
    )
    parser.add_argument(
        "--reward",
        type=str,
        default="baseline",
        choices=list(REWARD_CONFIGS),
        help="Reward profile used in training (default: baseline)",
    )
    parser.add_argument(
        "--n-episodes",
        type=int,
        default=10,
        help="Number of evaluation episodes (default: 10)",
    )
    parser.add_argument(
        "--no-render",
        action="store_true",
        help="Disable rendering",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    parser.add_argument(
        "--vec-normalize",
        type=str,
        default=None,
        help="Path to VecNormalize stats file (for PPO)",
    )
    parser.add_argument(
        "--compare-random",
        action="store_true",
        help="Also evaluate random policy for comparison",
    )

    args = parser.parse_args()

    results = evaluate_model(
        model_path=args.model_path,
        algo=args.algo,
        n_episodes=args.n_episodes,
        render=not args.no_render,
        seed=args.seed,
        vec_normalize_path=args.vec_normalize,
        reward_name=args.reward,
    )

    if args.compare_random:
        print("\n")
        random_results = compare_with_random(
            n_episodes=args.n_episodes,
            seed=args.seed,
            reward_name=args.reward,
        )

        improvement = results["mean_reward"] - random_results["mean_reward"]
        print(f"\nImprovement over random: {improvement:.2f}")
        skill_gap = results["mean_skill"] - random_results["mean_skill"]
        print(f"Skill rating gap vs random: {skill_gap:+.1f}")


if __name__ == "__main__":
    main()
