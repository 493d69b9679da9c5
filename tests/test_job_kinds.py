"""Tests for the job kind table."""

import pytest

from smsession.aws.job_kinds import JOB_KINDS, JobKind, get_job_kind


class TestJobKinds:
    """Tests for JobKind lookups."""

    def test_every_kind_has_an_entry(self):
        """Each JobKind maps to a table entry."""
        assert set(JOB_KINDS) == set(JobKind)

    def test_lookup_by_string(self):
        """String values resolve to the same entry."""
        assert get_job_kind("processing") is JOB_KINDS[JobKind.PROCESSING]

    def test_unknown_kind(self):
        """Unknown kinds list the valid ones."""
        with pytest.raises(ValueError, match="Valid kinds"):
            get_job_kind("compilation")

    def test_describe_and_stop(self, mock_sagemaker):
        """describe and stop call the kind's operations."""
        spec = get_job_kind(JobKind.AUTO_ML)

        spec.describe(mock_sagemaker, "aml")
        spec.stop(mock_sagemaker, "aml")

        mock_sagemaker.describe_auto_ml_job.assert_called_once_with(AutoMLJobName="aml")
        mock_sagemaker.stop_auto_ml_job.assert_called_once_with(AutoMLJobName="aml")

    @pytest.mark.parametrize(
        "kind, description, expected",
        [
            (JobKind.TRAINING, {"ResourceConfig": {"InstanceCount": 4}}, 4),
            (JobKind.TRANSFORM, {"TransformResources": {"InstanceCount": 2}}, 2),
            (JobKind.PROCESSING, {"ProcessingResources": {"ClusterConfig": {"InstanceCount": 3}}}, 3),
            (JobKind.AUTO_ML, {}, None),
        ],
    )
    def test_instance_count(self, kind, description, expected):
        """Instance counts come from each kind's resource config."""
        assert get_job_kind(kind).instance_count(description) == expected

    def test_terminal_statuses(self):
        """Stopping is not terminal."""
        spec = get_job_kind(JobKind.TRAINING)

        assert spec.is_terminal({"TrainingJobStatus": "Stopped"})
        assert not spec.is_terminal({"TrainingJobStatus": "Stopping"})
