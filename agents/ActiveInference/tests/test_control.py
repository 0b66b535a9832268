import unittest
import numpy as np
import sys
import os

# Add the project root to the path so we can import the modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from agents.ActiveInference import control, maths, utils
from agents.ActiveInference.beliefs import BeliefState
from agents.ActiveInference.inference import (
    PosteriorResult, RolloutInferenceEngine, StaticInferenceEngine, validate_posterior,
)
from environments.MountainCar import MountainCarEnv
from generative_models.SA_ActiveInference.MountainCar import A_fn, B_fn, C_fn, D_fn, model_init


class TestControl(unittest.TestCase):
    """Test cases for the control module functions."""

    def setUp(self):
        self.m_s = np.array([-0.5, 0.0])
        self.V_s = model_init.TINY * np.eye(2)

    def test_get_expected_states_follows_environment(self):
        controls = [1.0, 1.0, -2.0, 0.0]
        means, covs = control.get_expected_states(B_fn, self.m_s, self.V_s, controls)

        self.assertEqual(means.shape, (4, 2))
        self.assertEqual(covs.shape, (4, 2, 2))

        env = MountainCarEnv()
        for k, u in enumerate(controls):
            env.execute(u)
            np.testing.assert_allclose(means[k], env.observe(), atol=1e-10)

    def test_control_variance_widens_predicted_covariance(self):
        controls = [0.0, 0.0, 0.0]
        means_fixed, covs_fixed = control.get_expected_states(B_fn, self.m_s, self.V_s, controls)
        means_free, covs_free = control.get_expected_states(
            B_fn, self.m_s, self.V_s, controls, control_variances=[1.0, 1.0, 1.0]
        )

        np.testing.assert_array_equal(means_free, means_fixed)
        for V_fixed, V_free in zip(covs_fixed, covs_free):
            self.assertTrue(np.all(np.diag(V_free) > np.diag(V_fixed)))

    def test_get_expected_states_empty(self):
        means, covs = control.get_expected_states(B_fn, self.m_s, self.V_s, [])
        self.assertEqual(means.shape, (0, 2))
        self.assertEqual(covs.shape, (0, 2, 2))

    def test_goal_energy_prefers_states_near_goal(self):
        m_x = np.array([[0.5, 0.0]])
        V_x = np.array([model_init.SIGMA])
        cov = np.zeros((1, 2, 2))
        near = control.calc_goal_energy(A_fn, np.array([[0.45, 0.0]]), cov, m_x, V_x)
        far = control.calc_goal_energy(A_fn, np.array([[-0.5, 0.0]]), cov, m_x, V_x)
        self.assertLess(near, far)

    def test_uninformative_goal_is_flat(self):
        m_x = np.zeros((1, 2))
        V_x = np.array([model_init.HUGE * np.eye(2)])
        cov = np.zeros((1, 2, 2))
        a = control.calc_goal_energy(A_fn, np.array([[0.45, 0.0]]), cov, m_x, V_x)
        b = control.calc_goal_energy(A_fn, np.array([[-0.5, 0.0]]), cov, m_x, V_x)
        self.assertAlmostEqual(a, b, places=6)

    def test_policy_posterior_normalised_and_prefers_goal(self):
        policies = [[-1.0], [1.0]]
        horizon = 3
        m_u, V_u = np.zeros(horizon), np.full(horizon, model_init.HUGE)
        m_x = np.zeros((horizon, 2))
        V_x = np.tile(model_init.HUGE * np.eye(2), (horizon, 1, 1))
        m_x[-1] = [1.0, 0.0]
        V_x[-1] = model_init.SIGMA

        q_pi, G, rollouts = control.vanilla_update_posterior_policies(
            np.array([0.0, 0.0]), self.V_s, A_fn, B_fn, policies, m_u, V_u, m_x, V_x
        )

        self.assertAlmostEqual(float(np.sum(q_pi)), 1.0, places=10)
        self.assertEqual(len(G), 2)
        self.assertEqual(len(rollouts), 2)
        # pushing right gets closer to a goal on the right
        self.assertGreater(q_pi[1], q_pi[0])
        top = control.get_top_policies(q_pi, policies, top_k=1)
        self.assertEqual(top[0][0], [1.0])


class TestUtils(unittest.TestCase):

    def test_construct_policies(self):
        policies = utils.construct_policies([-1.0, 0.0, 1.0], 2)
        self.assertEqual(len(policies), 9)
        self.assertEqual(policies[0], [-1.0, -1.0])
        self.assertEqual(utils.construct_policies([5.0], 1), [[5.0]])

    def test_construct_policies_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            utils.construct_policies([1.0], 0)
        with self.assertRaises(ValueError):
            utils.construct_policies([], 2)

    def test_expand_policy(self):
        np.testing.assert_array_equal(utils.expand_policy([1.0, -1.0], 5), [1, 1, 1, -1, -1])
        np.testing.assert_array_equal(utils.expand_policy([1.0, -1.0, 0.5], 2), [1, -1])
        self.assertEqual(len(utils.expand_policy([1.0], 0)), 0)

    def test_select_policy(self):
        q_pi = np.array([0.1, 0.7, 0.2])
        self.assertEqual(utils.select_policy(q_pi), 1)
        rng = np.random.default_rng(0)
        idx = utils.select_policy(q_pi, "stochastic", alpha=16.0, rng=rng)
        self.assertIn(idx, (0, 1, 2))
        with self.assertRaises(ValueError):
            utils.select_policy(q_pi, "greedy")


class TestMaths(unittest.TestCase):

    def test_gaussian_nll_standard_normal(self):
        self.assertAlmostEqual(maths.gaussian_nll(0.0, 0.0, 1.0), 0.5 * np.log(2 * np.pi))
        self.assertAlmostEqual(maths.gaussian_nll(1.0, 0.0, 1.0), 0.5 * np.log(2 * np.pi) + 0.5)

    def test_gaussian_product_tight_dominates(self):
        m, V = maths.gaussian_product(
            np.array([0.0, 0.0]), 1e-2 * np.eye(2),
            np.array([1.0, 1.0]), model_init.TINY * np.eye(2),
        )
        np.testing.assert_allclose(m, [1.0, 1.0], atol=1e-8)
        self.assertTrue(np.all(np.diag(V) <= 1e-11))

    def test_gaussian_product_equal_weights(self):
        m, V = maths.gaussian_product(np.array([0.0]), np.eye(1), np.array([2.0]), np.eye(1))
        np.testing.assert_allclose(m, [1.0])
        np.testing.assert_allclose(V, 0.5 * np.eye(1))

    def test_softmax(self):
        p = maths.softmax(np.array([1000.0, 0.0]))
        self.assertAlmostEqual(float(np.sum(p)), 1.0)
        self.assertAlmostEqual(float(p[0]), 1.0)


class TestEngines(unittest.TestCase):

    def setUp(self):
        self.horizon = 6
        self.beliefs = BeliefState.from_model(C_fn, D_fn, self.horizon, x_target=model_init.x_target)

    def test_static_engine_repeats_observation(self):
        self.beliefs.clamp_control(0.0)
        self.beliefs.clamp_observation(np.array([-0.4, 0.01]))
        result = validate_posterior(StaticInferenceEngine().infer(self.beliefs), self.horizon)

        np.testing.assert_array_equal(result.controls, np.zeros(self.horizon))
        np.testing.assert_array_equal(result.states, np.tile([-0.4, 0.01], (self.horizon, 1)))
        np.testing.assert_array_equal(result.state_prior[0], [-0.4, 0.01])

    def test_static_engine_uses_prior_without_observation(self):
        result = StaticInferenceEngine().infer(self.beliefs)
        np.testing.assert_array_equal(result.states[0], self.beliefs.m_s)

    def test_rollout_engine_contract(self):
        engine = RolloutInferenceEngine(A_fn, B_fn, action_levels=(-10.0, 0.0, 10.0), policy_len=2)
        self.assertEqual(len(engine.policies), 9)

        env = MountainCarEnv()
        env.execute(0.3)
        obs = env.observe()
        self.beliefs.clamp_control(0.3)
        self.beliefs.clamp_observation(obs)

        result = validate_posterior(engine.infer(self.beliefs), self.horizon)

        self.assertIsInstance(result, PosteriorResult)
        self.assertEqual(len(result.controls), self.horizon)
        self.assertEqual(result.controls[0], 0.3)
        for u in result.controls[1:]:
            self.assertIn(u, (-10.0, 0.0, 10.0))
        np.testing.assert_allclose(result.states[0], obs, atol=1e-8)
        np.testing.assert_allclose(result.state_prior[0], obs, atol=1e-8)
        self.assertAlmostEqual(float(np.sum(result.info["q_pi"])), 1.0, places=10)
        top = result.info["top_policies"]
        self.assertIn(result.info["policy"], [policy for policy, _, _ in top])
        top_prob = top[0][1]
        self.assertAlmostEqual(top_prob, float(np.max(result.info["q_pi"])))

    def test_rollout_states_follow_planned_controls(self):
        engine = RolloutInferenceEngine(A_fn, B_fn, policy_len=3)
        self.beliefs.clamp_control(0.0)
        self.beliefs.clamp_observation(np.array([-0.5, 0.0]))
        result = engine.infer(self.beliefs)

        env = MountainCarEnv()
        for k in range(1, self.horizon):
            env.execute(result.controls[k])
            np.testing.assert_allclose(result.states[k], env.observe(), atol=1e-8)

    def test_rollout_engine_deterministic(self):
        engine = RolloutInferenceEngine(A_fn, B_fn, policy_len=2)
        self.beliefs.clamp_control(0.0)
        self.beliefs.clamp_observation(np.array([-0.5, 0.0]))
        a = engine.infer(self.beliefs.copy())
        b = engine.infer(self.beliefs.copy())
        np.testing.assert_array_equal(a.controls, b.controls)
        np.testing.assert_array_equal(a.states, b.states)

    def test_rollout_engine_propagates_control_variance(self):
        self.beliefs.clamp_control(0.0)
        self.beliefs.clamp_observation(np.array([-0.5, 0.0]))
        fixed = RolloutInferenceEngine(A_fn, B_fn, action_levels=(0.0,), policy_len=1)
        noisy = RolloutInferenceEngine(A_fn, B_fn, action_levels=(0.0,), policy_len=1, control_variance=1.0)

        a = fixed.infer(self.beliefs.copy())
        b = noisy.infer(self.beliefs.copy())

        np.testing.assert_array_equal(a.states, b.states)
        for V_fixed, V_noisy in zip(a.state_covs[1:], b.state_covs[1:]):
            self.assertTrue(np.all(np.diag(V_noisy) > np.diag(V_fixed)))

    def test_rollout_engine_rejects_unknown_selection(self):
        with self.assertRaises(ValueError):
            RolloutInferenceEngine(A_fn, B_fn, action_selection="greedy")


if __name__ == '__main__':
    unittest.main()
