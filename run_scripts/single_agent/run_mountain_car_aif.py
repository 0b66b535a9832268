"""
Run the mountain car task with a naive policy or the Active Inference agent.

The naive policy pushes right with a constant action every step; the engine is
too weak for that to work. The Active Inference agent plans over a sliding
horizon and executes one control per step.
"""

import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent.resolve()
sys.path.insert(0, str(project_root))

import argparse
import csv
import logging
from datetime import datetime

import numpy as np
from tqdm import tqdm

from environments.MountainCar import MountainCarEnv
from environments.MountainCar.physics import height
from generative_models.SA_ActiveInference.MountainCar import (
    A_fn, B_fn, C_fn, D_fn, model_init, env_utils
)
from agents.ActiveInference import Agent, RolloutInferenceEngine, StaticInferenceEngine


CSV_FIELDS = ['step', 'action', 'position', 'velocity', 'height']


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def make_env(args):
    return MountainCarEnv(
        initial_position=args.initial_position,
        initial_velocity=args.initial_velocity,
        engine_force_limit=model_init.engine_force_limit,
        friction_coefficient=model_init.friction_coefficient,
        target=model_init.x_target,
    )


def make_agent(args):
    if args.engine == "static":
        engine = StaticInferenceEngine(tiny=model_init.TINY)
    else:
        levels = args.action_level * np.array([-1.0, 0.0, 1.0])
        engine = RolloutInferenceEngine(
            A_fn,
            B_fn,
            action_levels=levels.tolist(),
            policy_len=args.policy_len,
            gamma=args.gamma,
        )
    return Agent(
        engine,
        C_fn,
        D_fn,
        horizon=args.horizon,
        x_target=model_init.x_target,
        initial_state=(args.initial_position, args.initial_velocity),
        tiny=model_init.TINY,
        on_inference_failure=args.on_inference_failure,
        state_prior_offset=args.state_prior_offset,
    )


def run_naive(env, num_steps, action, csv_writer=None, verbose=False):
    """Constant action every step, through the gymnasium API."""
    observations = []
    env_action = env_utils.model_action_to_env_action(action)
    for step in tqdm(range(1, num_steps + 1), disable=verbose, desc="naive", leave=False):
        env_obs, _, _, _, _ = env.step(env_action)
        obs = env_utils.env_obs_to_model_obs(env_obs)
        observations.append(obs)
        log_step(step, action, obs, csv_writer, verbose)
    return observations


def run_aif(env, agent, num_steps, csv_writer=None, verbose=False):
    """Act → execute → observe → infer → slide, num_steps times."""
    observations = []
    for step in tqdm(range(1, num_steps + 1), disable=verbose, desc="aif", leave=False):
        record = agent.step(env)
        observations.append(record.observation)
        log_step(step, record.action, record.observation, csv_writer, verbose)
    return observations


def log_step(step, action, obs, csv_writer, verbose):
    if csv_writer is not None:
        csv_writer.writerow({
            'step': step,
            'action': action,
            'position': obs[0],
            'velocity': obs[1],
            'height': height(obs[0]),
        })
    if verbose:
        print(f"  step {step:4d}  a={action:+9.4f}  x={obs[0]:+.4f}  v={obs[1]:+.4f}  h={height(obs[0]):+.4f}")


def summarize(name, observations):
    target_height = height(model_init.x_target[0])
    final = observations[-1]
    reached = any(obs[0] >= model_init.x_target[0] for obs in observations)
    print(f"\n{name}:")
    print(f"  Final position:   {final[0]:+.4f}")
    print(f"  Final velocity:   {final[1]:+.4f}")
    print(f"  Final height:     {height(final[0]):+.4f} (target {target_height:+.4f})")
    print(f"  Reached target:   {'YES' if reached else 'no'}")
    return reached


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--steps", type=positive_int, default=100)
    parser.add_argument("--horizon", type=int, default=model_init.T)
    parser.add_argument("--policy", choices=["aif", "naive"], default="aif")
    parser.add_argument("--engine", choices=["rollout", "static"], default="rollout")
    parser.add_argument("--naive-action", type=float, default=100.0)
    parser.add_argument("--action-level", type=float, default=10.0,
                        help="Magnitude of the control levels explored by the rollout engine")
    parser.add_argument("--policy-len", type=int, default=4)
    parser.add_argument("--gamma", type=float, default=16.0)
    parser.add_argument("--initial-position", type=float, default=model_init.initial_position)
    parser.add_argument("--initial-velocity", type=float, default=model_init.initial_velocity)
    parser.add_argument("--on-inference-failure", choices=["raise", "default"], default="raise")
    parser.add_argument("--state-prior-offset", type=int, default=2,
                        help="Horizon offset of the posterior state that reseeds the previous-state prior")
    parser.add_argument("--csv", action="store_true", help="Write per-step CSV under logs/")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    csv_file = None
    csv_writer = None
    if args.csv:
        log_dir = project_root / "logs"
        log_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        csv_path = log_dir / f"mountain_car_{args.policy}_steps{args.steps}_{timestamp}.csv"
        csv_file = open(csv_path, 'w', newline='')
        csv_writer = csv.DictWriter(csv_file, fieldnames=CSV_FIELDS)
        csv_writer.writeheader()
        print(f"Logging to: {csv_path}")

    print(f"\nExperiment Parameters:")
    print(f"  Policy:   {args.policy}")
    print(f"  Steps:    {args.steps}")
    if args.policy == "aif":
        print(f"  Horizon:  {args.horizon}")
        print(f"  Engine:   {args.engine}")

    env = make_env(args)
    env.reset()
    try:
        if args.policy == "naive":
            observations = run_naive(env, args.steps, args.naive_action, csv_writer, args.verbose)
            summarize("Naive policy", observations)
        else:
            agent = make_agent(args)
            observations = run_aif(env, agent, args.steps, csv_writer, args.verbose)
            summarize("Active Inference agent", observations)
    finally:
        if csv_file is not None:
            csv_file.close()


if __name__ == "__main__":
    main()
