import argparse
import importlib.util
import os
import sys
import unittest
from unittest import mock

SCRIPT = os.path.join(os.path.dirname(__file__), '..', 'run_mountain_car_aif.py')

module_spec = importlib.util.spec_from_file_location("run_mountain_car_aif", SCRIPT)
run_mountain_car_aif = importlib.util.module_from_spec(module_spec)
module_spec.loader.exec_module(run_mountain_car_aif)


class TestArguments(unittest.TestCase):

    def test_positive_int(self):
        self.assertEqual(run_mountain_car_aif.positive_int("3"), 3)
        for value in ("0", "-2"):
            with self.subTest(value=value):
                with self.assertRaises(argparse.ArgumentTypeError):
                    run_mountain_car_aif.positive_int(value)

    def test_zero_steps_rejected_before_running(self):
        argv = ["run_mountain_car_aif.py", "--steps", "0", "--policy", "naive"]
        with mock.patch.object(sys, "argv", argv), mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                run_mountain_car_aif.main()


class TestRuns(unittest.TestCase):

    def test_naive_run_summary(self):
        argv = ["run_mountain_car_aif.py", "--steps", "5", "--policy", "naive"]
        with mock.patch.object(sys, "argv", argv), mock.patch("builtins.print") as printed:
            run_mountain_car_aif.main()
        output = " ".join(str(call.args[0]) for call in printed.call_args_list if call.args)
        self.assertIn("Naive policy", output)
        self.assertIn("Reached target:   no", output)

    def test_static_agent_run(self):
        argv = ["run_mountain_car_aif.py", "--steps", "3", "--engine", "static", "--horizon", "4"]
        with mock.patch.object(sys, "argv", argv), mock.patch("builtins.print"):
            run_mountain_car_aif.main()


if __name__ == '__main__':
    unittest.main()
