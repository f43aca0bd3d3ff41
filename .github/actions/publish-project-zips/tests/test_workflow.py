"""Unit tests covering the publish-zips workflow definition."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from _helpers import SCRIPTS_DIR

GITHUB_DIR = Path(__file__).resolve().parents[3]
WORKFLOW_PATH = GITHUB_DIR / "workflows" / "publish-zips.yml"


@pytest.fixture(scope="module")
def workflow() -> dict[object, object]:
    """Return the parsed workflow document."""
    return yaml.safe_load(WORKFLOW_PATH.read_text(encoding="utf-8"))


def test_triggers_on_version_tags(workflow: dict[object, object]) -> None:
    """Only pushed version tags start the workflow."""
    # YAML 1.1 reads the bare ``on`` key as a boolean.
    triggers = workflow.get("on", workflow.get(True))

    assert triggers == {"push": {"tags": ["v*.*.*"]}}


def test_job_graph(workflow: dict[object, object]) -> None:
    """Release and package publishing fan out from the archive job."""
    jobs = workflow["jobs"]

    assert set(jobs) == {
        "create-project-zips",
        "create-github-release",
        "upload-release-assets",
        "upload-packages",
    }
    assert jobs["create-github-release"]["needs"] == "create-project-zips"
    assert set(jobs["upload-release-assets"]["needs"]) == {
        "create-project-zips",
        "create-github-release",
    }
    assert jobs["upload-packages"]["needs"] == "create-project-zips"


@pytest.mark.parametrize("job", ["upload-release-assets", "upload-packages"])
def test_publishers_skip_when_nothing_was_archived(
    workflow: dict[object, object], job: str
) -> None:
    """Publishing jobs are gated on a non-zero archive count."""
    condition = workflow["jobs"][job]["if"]

    assert "needs.create-project-zips.outputs.archive_count != '0'" in condition


def test_artifact_hand_off(workflow: dict[object, object]) -> None:
    """Zips travel between jobs as the short-lived ``project-zips`` artifact."""
    jobs = workflow["jobs"]
    upload = next(
        step
        for step in jobs["create-project-zips"]["steps"]
        if str(step.get("uses", "")).startswith("actions/upload-artifact@")
    )

    assert upload["with"]["name"] == "project-zips"
    assert upload["with"]["retention-days"] == 1
    for job in ("upload-release-assets", "upload-packages"):
        download = next(
            step
            for step in jobs[job]["steps"]
            if str(step.get("uses", "")).startswith("actions/download-artifact@")
        )
        assert download["with"]["name"] == "project-zips"


def test_run_steps_reference_existing_scripts(workflow: dict[object, object]) -> None:
    """Every ``uv run --script`` step names a script shipped with the action."""
    scripts: list[str] = []
    for job in workflow["jobs"].values():
        for step in job["steps"]:
            run = step.get("run", "")
            if "uv run --script" in run:
                scripts.append(run.rsplit("/", 1)[-1].strip('"'))

    assert sorted(scripts) == [
        "archive_projects.py",
        "publish_packages.py",
        "reconcile_release.py",
        "upload_release_assets.py",
    ]
    for name in scripts:
        assert (SCRIPTS_DIR / name).is_file()
    scripts_dir = workflow["env"]["SCRIPTS_DIR"]
    assert scripts_dir == ".github/actions/publish-project-zips/scripts"
