"""
Playtest configuration for the memecoin dodge environment
Reward shaping variants stand in for players of different temperament
"""

# Environment parameters
ENV_CONFIG = {
    # "render_mode": None,  # keep rendering off for vectorised training
    "width": 800,
    "height": 800,
    "dt": 1/30,
    "k_projectiles": 6,
}

# GameConfig overrides; empty means the tuned game defaults
SESSION_CONFIG = {
    "max_seconds": 180.0,
}

# ==============================================================================
# REWARD SHAPING CONFIGURATIONS
# Each one models a different kind of player for the difficulty controller
# ==============================================================================

# Reward Config 1: BASELINE (balanced player)
REWARD_CONFIG_BASELINE = {
    "name": "baseline",
    "description": "Balanced survival and dodging",
    "R_ALIVE": 0.01,      # Per-step survival reward
    "R_DODGE": 0.1,       # Missile reached the ground without touching the player
    "R_NEAR_MISS": 0.05,  # Missile passed within the near-miss band
    "R_DAMAGE": 2.0,      # Penalty per fraction of max health lost
    "R_DEATH": 5.0,       # Death penalty
}

# Reward Config 2: CAUTIOUS (keeps far away from everything)
REWARD_CONFIG_CAUTIOUS = {
    "name": "cautious",
    "description": "Heavy damage/death penalties, no thrill from near misses",
    "R_ALIVE": 0.02,
    "R_DODGE": 0.05,
    "R_NEAR_MISS": 0.0,
    "R_DAMAGE": 5.0,
    "R_DEATH": 10.0,
}

# Reward Config 3: THRILL_SEEKER (chases near misses)
REWARD_CONFIG_THRILL = {
    "name": "thrill",
    "description": "Rewards grazing missiles - pushes the skill rating up",
    "R_ALIVE": 0.005,
    "R_DODGE": 0.1,
    "R_NEAR_MISS": 0.5,
    "R_DAMAGE": 1.0,
    "R_DEATH": 3.0,
}

REWARD_CONFIGS = {
    "baseline": REWARD_CONFIG_BASELINE,
    "cautious": REWARD_CONFIG_CAUTIOUS,
    "thrill": REWARD_CONFIG_THRILL,
}

# ==============================================================================
# ALGORITHM HYPERPARAMETERS
# ==============================================================================

# PPO hyperparameters
PPO_CONFIG = {
    "policy": "MlpPolicy",
    "learning_rate": 3e-4,
    "n_steps": 1024,
    "batch_size": 256,
    "n_epochs": 10,
    "gamma": 0.99,
    "gae_lambda": 0.95,
    "clip_range": 0.2,
    "ent_coef": 0.01,
    "vf_coef": 0.5,
    "max_grad_norm": 0.5,
    "verbose": 1,
}

# DQN hyperparameters (actions flattened to Discrete(20))
DQN_CONFIG = {
    "policy": "MlpPolicy",
    "learning_rate": 1e-4,
    "buffer_size": 100_000,
    "learning_starts": 1000,
    "batch_size": 128,
    "tau": 1.0,
    "gamma": 0.99,
    "train_freq": 4,
    "gradient_steps": 1,
    "target_update_interval": 1000,
    "exploration_fraction": 0.1,
    "exploration_initial_eps": 1.0,
    "exploration_final_eps": 0.05,
    "verbose": 1,
}

# ==============================================================================
# TRAINING SETTINGS
# ==============================================================================

TRAINING_CONFIG = {
    "total_timesteps": 300_000,
    "save_freq": 10_000,
    "eval_freq": 5_000,
    "n_eval_episodes": 10,
    "log_dir": "./logs",
    "model_dir": "./models",
    "tensorboard_log": "./tensorboard_logs",
}
