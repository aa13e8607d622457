import json
import logging
import unittest
from pathlib import Path

from src.common.log import policy_logger
from src.policy.evaluator import PARSE_ERROR_MESSAGE, Decision, ProbesPolicy

DATA_DIR = Path(__file__).parent / "data"


def _load(name: str) -> bytes:
    return (DATA_DIR / name).read_bytes()


class ProbesPolicyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = ProbesPolicy()

    def test_accept_pod_with_probes(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation.json"))
        self.assertEqual(decision, Decision.accept())

    def test_reject_pod_without_liveness(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_invalid_liveness.json"))
        self.assertFalse(decision.accepted)
        self.assertIn("without liveness probe is not accepted", decision.message)
        self.assertTrue(decision.message.startswith("container nginx is invalid"))

    def test_reject_pod_without_readiness(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_invalid_readiness.json"))
        self.assertFalse(decision.accepted)
        self.assertIn("without readiness probe is not accepted", decision.message)

    def test_accept_pod_init_containers_with_probes(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_init_container.json"))
        self.assertTrue(decision.accepted)

    def test_reject_pod_init_containers_without_liveness(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_invalid_liveness_init_container.json"))
        self.assertFalse(decision.accepted)
        self.assertTrue(decision.message.startswith("init container init-db is invalid"))
        self.assertIn("without liveness probe is not accepted", decision.message)

    def test_reject_pod_init_containers_without_readiness(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_invalid_readiness_init_container.json"))
        self.assertFalse(decision.accepted)
        self.assertTrue(decision.message.startswith("init container"))
        self.assertIn("without readiness probe is not accepted", decision.message)

    def test_reject_ephemeral_container(self) -> None:
        decision = self.policy.evaluate(_load("pod_creation_invalid_ephemeral_container.json"))
        self.assertFalse(decision.accepted)
        self.assertTrue(decision.message.startswith("ephemeral container debugger"))
        self.assertEqual(len(decision.message.splitlines()), 1)

    def test_accept_object_without_pod_spec(self) -> None:
        decision = self.policy.evaluate(_load("configmap_creation.json"))
        self.assertEqual(decision, Decision.accept())

    def test_reject_unparsable_request(self) -> None:
        for payload in (b"", b"\x00garbage", b"null", b'{"request": "pod"}'):
            with self.subTest(payload=payload):
                decision = self.policy.evaluate(payload)
                self.assertFalse(decision.accepted)
                self.assertEqual(decision.message, PARSE_ERROR_MESSAGE)

    def test_reject_payloads_json_cannot_decode(self) -> None:
        deep_probe = "{\"a\": " * 5000 + "{}" + "}" * 5000
        pod = (
            '{"request": {"uid": "x", "kind": {"group": "", "version": "v1", "kind": "Pod"}, '
            '"object": {"spec": {"containers": [{"name": "web", "readinessProbe": {}, '
            '"livenessProbe": ' + deep_probe + "}]}}}}"
        )
        payloads = (
            b"[" * 100000,
            b'{"request": {"uid": "x", "object": {"n": ' + b"1" * 5000 + b"}}}",
            pod.encode("utf-8"),
        )
        for payload in payloads:
            with self.subTest(size=len(payload)):
                decision = self.policy.evaluate(payload)
                self.assertEqual(decision, Decision.reject(PARSE_ERROR_MESSAGE))

    def test_reject_malformed_pod_spec(self) -> None:
        payload = {
            "request": {
                "uid": "x",
                "kind": {"group": "", "version": "v1", "kind": "Pod"},
                "object": {"spec": {"containers": [{"image": "nginx"}]}},
            }
        }
        decision = self.policy.evaluate(json.dumps(payload))
        self.assertEqual(decision, Decision.reject(PARSE_ERROR_MESSAGE))

    def test_deployment_reports_only_failing_container(self) -> None:
        decision = self.policy.evaluate(_load("deployment_creation_invalid.json"))
        self.assertFalse(decision.accepted)
        self.assertEqual(
            decision.message,
            "container sidecar is invalid: container sidecar without liveness probe is not accepted; "
            "container sidecar without readiness probe is not accepted",
        )

    def test_cronjob_with_probes_is_accepted(self) -> None:
        self.assertTrue(self.policy.evaluate(_load("cronjob_creation.json")).accepted)

    def test_evaluation_is_idempotent(self) -> None:
        payload = _load("deployment_creation_invalid.json")
        self.assertEqual(self.policy.evaluate(payload), self.policy.evaluate(payload))

    def test_never_mutates(self) -> None:
        payload = json.loads(_load("pod_creation_invalid_liveness.json"))
        snapshot = json.loads(json.dumps(payload))
        response = self.policy.evaluate(payload).to_response()
        self.assertIsNone(response["mutated_object"])
        self.assertEqual(payload, snapshot)

    def test_response_shape(self) -> None:
        self.assertEqual(
            Decision.reject("nope").to_response(),
            {"accepted": False, "message": "nope", "code": None, "mutated_object": None},
        )
        self.assertEqual(
            Decision.accept().to_response(),
            {"accepted": True, "message": None, "code": None, "mutated_object": None},
        )


class ProbesPolicyLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger_name = "probes_policy.tests.evaluator"
        self.policy = ProbesPolicy(logger=policy_logger(logging.getLogger(self.logger_name)))

    def test_logs_start_of_validation(self) -> None:
        with self.assertLogs(self.logger_name, level="INFO") as captured:
            self.policy.evaluate(_load("pod_creation.json"))
        messages = [record.getMessage() for record in captured.records]
        self.assertEqual(messages, ["starting validation"])

    def test_logs_warning_for_unparsable_request(self) -> None:
        with self.assertLogs(self.logger_name, level="WARNING") as captured:
            self.policy.evaluate(b"not json")
        self.assertEqual(len(captured.records), 1)
        self.assertEqual(captured.records[0].levelno, logging.WARNING)
        self.assertIn("cannot unmarshal resource", captured.records[0].getMessage())

    def test_logs_each_rejected_container(self) -> None:
        with self.assertLogs(self.logger_name, level="INFO") as captured:
            self.policy.evaluate(_load("deployment_creation_invalid.json"))
        rejected = [record.container_name for record in captured.records if record.getMessage() == "rejecting pod"]
        self.assertEqual(rejected, ["sidecar"])

    def test_logger_without_handlers_does_not_change_decision(self) -> None:
        silent = logging.getLogger("probes_policy.tests.silent")
        silent.addHandler(logging.NullHandler())
        silent.propagate = False
        policy = ProbesPolicy(logger=silent)
        payload = _load("pod_creation_invalid_readiness.json")
        self.assertEqual(policy.evaluate(payload), self.policy.evaluate(payload))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
