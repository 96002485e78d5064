from __future__ import annotations

import json

from ptp_leap.report import StepReporter


def test_step_is_appended_as_json(tmp_path):
    path = tmp_path / "reports" / "steps.jsonl"
    reporter = StepReporter(path=path, test_id="75325", labels=["leapfile"])

    reporter.by("pulling leap configmap", metadata={"namespace": "openshift-ptp"})
    reporter.by("deleting all linuxptp-daemon pods")

    rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["step"] for r in rows] == ["pulling leap configmap", "deleting all linuxptp-daemon pods"]
    assert rows[0]["metadata"] == {"namespace": "openshift-ptp"}
    assert rows[1]["test_id"] == "75325"


def test_disabled_reporter_writes_nothing(tmp_path):
    path = tmp_path / "steps.jsonl"
    StepReporter(path=path, enabled=False).by("anything")
    assert not path.exists()
