"""Progressive training state machine, driven by stub rankers."""

import numpy as np
import pytest

from conftest import FakeModelStore, RecordingRanker, make_dataset
from search_ranking.errors import SchemaMismatch, StageFailed
from search_ranking.serving import extract_top
from search_ranking.training import (
    PipelineSnapshot,
    PipelineStage,
    ProgressiveTrainingOrchestrator,
    TrainingConfig,
    Transformer,
)


class BrokenTransformer(Transformer):
    """Raises on every transform call."""

    def __init__(self, error):
        self.error = error

    def transform(self, dataset):
        raise self.error


@pytest.fixture
def config(tmp_path):
    model_dir = tmp_path / "models"
    model_dir.mkdir()
    return TrainingConfig(model_path=model_dir / "model.zip", truncation_level=3)


def build(ranker, splits, config, **kwargs):
    train, validation, test = splits
    return ProgressiveTrainingOrchestrator(
        ranker=ranker, train=train, validation=validation, test=test, config=config, **kwargs
    )


class TestStages:
    def test_stage_sequence(self, recording_ranker, splits, config):
        orchestrator = build(recording_ranker, splits, config)

        snapshot = PipelineSnapshot()
        stages = []
        while snapshot.stage is not PipelineStage.FINALIZED:
            snapshot = orchestrator.step(snapshot)
            stages.append(snapshot.stage.value)

        assert stages == [
            "TrainedOnTrain",
            "EvaluatedOnValidation",
            "TrainedOnTrainPlusValidation",
            "EvaluatedOnTest",
            "TrainedOnAll",
            "Finalized",
        ]

    def test_step_returns_new_snapshot(self, recording_ranker, splits, config):
        orchestrator = build(recording_ranker, splits, config)
        initial = PipelineSnapshot()

        after = orchestrator.step(initial)

        assert initial.stage is PipelineStage.INITIAL
        assert initial.transformer is None
        assert after is not initial

    def test_step_after_finalized(self, recording_ranker, splits, config):
        orchestrator = build(recording_ranker, splits, config)

        with pytest.raises(RuntimeError):
            orchestrator.step(PipelineSnapshot(stage=PipelineStage.FINALIZED))


class TestProgressiveTraining:
    def test_training_sets_widen_in_order(self, recording_ranker, splits, config):
        train, validation, test = splits

        result = build(recording_ranker, splits, config).run()

        sizes = [len(d) for d in recording_ranker.fitted]
        assert sizes == [
            len(train),
            len(train) + len(validation),
            len(train) + len(validation) + len(test),
        ]
        final = recording_ranker.fitted[-1]
        np.testing.assert_array_equal(
            final.group_ids,
            np.concatenate([train.group_ids, validation.group_ids, test.group_ids]),
        )
        assert result.training_rows == len(final)

    def test_merge_then_train(self, recording_ranker, splits, config):
        a = make_dataset([(1, 1, (0, 0, 0)), (1, 0, (1, 1, 1))])
        b = make_dataset([(2, 2, (2, 2, 2))])
        orchestrator = build(recording_ranker, splits, config)

        orchestrator.train(orchestrator.merge_datasets(a, b))

        received = recording_ranker.fitted[-1]
        assert len(received) == len(a) + len(b)
        assert list(received.labels) == [1, 0, 2]

    def test_metrics_reported(self, recording_ranker, splits, config):
        result = build(recording_ranker, splits, config).run()

        assert result.validation_metrics.truncation_level == 3
        assert result.validation_metrics.ndcg == pytest.approx((1.0, 1.0, 1.0))
        assert result.test_metrics.ndcg == pytest.approx((1.0, 1.0, 1.0))

    def test_evaluate_rejects_bad_level(self, recording_ranker, splits, config):
        orchestrator = build(recording_ranker, splits, config)
        transformer = orchestrator.train(splits[0])

        with pytest.raises(ValueError):
            orchestrator.evaluate(transformer, splits[1], truncation_level=11)

    def test_without_model_store(self, recording_ranker, splits, config):
        result = build(recording_ranker, splits, config).run()

        assert result.model_path is None
        assert len(result.top_results) > 0


class TestFinalize:
    def test_saves_and_consumes_reloaded_model(self, recording_ranker, splits, config):
        store = FakeModelStore()

        result = build(recording_ranker, splits, config, model_store=store).run()

        staged_path = store.saved[0][1]
        assert len(store.saved) == 1
        assert store.loaded == [staged_path]
        assert staged_path != config.model_path
        assert staged_path.parent == config.model_path.parent
        assert not staged_path.exists()
        assert result.model_path == config.model_path
        assert config.model_path.read_bytes() == b"model"

    def test_top_results_for_first_test_group(self, recording_ranker, splits, config):
        test = splits[2]

        result = build(recording_ranker, splits, config).run()

        first_group = int(test.group_ids[0])
        expected = extract_top(
            result.transformer.transform(test).rows(), first_group, config.top_k_scan_window
        )
        assert list(result.top_results) == expected
        assert all(row.group_id == first_group for row in result.top_results)
        scores = [row.score for row in result.top_results]
        assert scores == sorted(scores, reverse=True)


class TestFailures:
    def test_stage_failed_carries_stage_and_cause(self, splits, config):
        error = RuntimeError("out of memory")
        ranker = RecordingRanker(fail_on_call=2, error=error)

        with pytest.raises(StageFailed) as excinfo:
            build(ranker, splits, config).run()

        assert excinfo.value.stage == "TrainedOnTrainPlusValidation"
        assert excinfo.value.cause is error
        assert excinfo.value.__cause__ is error

    def test_later_stages_do_not_run(self, splits, config):
        ranker = RecordingRanker(fail_on_call=1)
        store = FakeModelStore()

        with pytest.raises(StageFailed) as excinfo:
            build(ranker, splits, config, model_store=store).run()

        assert excinfo.value.stage == "TrainedOnTrain"
        assert len(ranker.fitted) == 1
        assert store.saved == []

    def test_failed_reload_leaves_no_model(self, recording_ranker, splits, config):
        store = FakeModelStore(load_error=OSError("disk went away"))

        with pytest.raises(StageFailed) as excinfo:
            build(recording_ranker, splits, config, model_store=store).run()

        assert excinfo.value.stage == "Finalized"
        assert not config.model_path.exists()
        assert list(config.model_path.parent.iterdir()) == []

    def test_failed_scoring_keeps_previous_model(self, recording_ranker, splits, config):
        config.model_path.write_bytes(b"previous")
        error = RuntimeError("scoring failed")
        orchestrator = build(recording_ranker, splits, config, model_store=FakeModelStore())
        snapshot = PipelineSnapshot(
            stage=PipelineStage.TRAINED_ON_ALL,
            transformer=BrokenTransformer(error),
            training_data=splits[0],
        )

        with pytest.raises(StageFailed) as excinfo:
            orchestrator.step(snapshot)

        assert excinfo.value.cause is error
        assert config.model_path.read_bytes() == b"previous"
        assert [p.name for p in config.model_path.parent.iterdir()] == [config.model_path.name]

    def test_schema_mismatch_between_splits(self, recording_ranker, splits, config):
        train, _, test = splits
        narrow = make_dataset([(50, 1, (0.1, 0.2))], feature_names=("f0", "f1"))
        orchestrator = ProgressiveTrainingOrchestrator(
            ranker=recording_ranker, train=train, validation=narrow, test=test, config=config
        )

        with pytest.raises(StageFailed) as excinfo:
            orchestrator.run()

        assert isinstance(excinfo.value.cause, SchemaMismatch)
        assert excinfo.value.stage == "TrainedOnTrainPlusValidation"
