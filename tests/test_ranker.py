"""XGBoost ranker and model persistence."""

import numpy as np
import pytest

from conftest import make_dataset, synthetic_dataset
from search_ranking.errors import EmptyInput, SchemaMismatch
from search_ranking.features import FeatureConfig
from search_ranking.shared_utils.model_store import ModelStore
from search_ranking.training import (
    ProgressiveTrainingOrchestrator,
    RankingTransformer,
    XGBoostRanker,
    evaluate_ranking,
)


@pytest.fixture
def train_data():
    return synthetic_dataset(num_groups=40, rows_per_group=6, seed=11)


@pytest.fixture
def fitted(fast_config, train_data):
    return XGBoostRanker(fast_config).fit(train_data)


class TestXGBoostRanker:
    def test_scores_every_row(self, fitted, train_data):
        scored = fitted.transform(train_data)

        assert isinstance(fitted, RankingTransformer)
        assert len(scored) == len(train_data)
        assert scored.scores.dtype == np.float32
        np.testing.assert_array_equal(scored.group_ids, train_data.group_ids)

    def test_learns_informative_feature(self, fitted):
        holdout = synthetic_dataset(num_groups=20, rows_per_group=6, seed=12, first_group=500)

        metrics = evaluate_ranking(fitted.transform(holdout), truncation_level=3)

        assert metrics.ndcg_at(3) > 0.8

    def test_deterministic_for_fixed_seed(self, fast_config, train_data, fitted):
        again = XGBoostRanker(fast_config).fit(train_data)

        np.testing.assert_array_equal(
            fitted.transform(train_data).scores, again.transform(train_data).scores
        )

    def test_records_training_rows(self, fitted, train_data):
        assert fitted.num_training_rows == len(train_data)

    def test_excluded_features(self, fast_config, train_data):
        transformer = XGBoostRanker(fast_config, FeatureConfig(excluded_features=["f2"])).fit(
            train_data
        )

        assert transformer.schema.feature_names == ("f0", "f1")
        assert len(transformer.transform(train_data)) == len(train_data)

    def test_empty_dataset(self, fast_config):
        with pytest.raises(EmptyInput):
            XGBoostRanker(fast_config).fit(make_dataset([]))

    def test_width_mismatch_at_scoring(self, fitted):
        narrow = make_dataset([(1, 0, (0.1, 0.2))], feature_names=("f0", "f1"))

        with pytest.raises(SchemaMismatch):
            fitted.transform(narrow)


class TestModelStore:
    def test_round_trip_scores(self, fitted, train_data, tmp_path):
        path = ModelStore.save(fitted, tmp_path / "models" / "ranker.zip")

        loaded, schema = ModelStore.load(path)

        assert schema == fitted.schema
        np.testing.assert_allclose(
            loaded.transform(train_data).scores,
            fitted.transform(train_data).scores,
            rtol=1e-6,
        )

    def test_no_temporary_files_left(self, fitted, tmp_path):
        ModelStore.save(fitted, tmp_path / "ranker.zip")

        assert [p.name for p in tmp_path.iterdir()] == ["ranker.zip"]

    def test_model_info(self, fitted, train_data, tmp_path):
        path = ModelStore.save(fitted, tmp_path / "ranker.zip")

        info = ModelStore.load_model_info(path)

        assert info["num_training_rows"] == len(train_data)
        assert info["num_features"] == 3
        assert info["model_name"] == "ranker"

    def test_missing_model(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ModelStore.load(tmp_path / "missing.zip")
        assert ModelStore.load_model_info(tmp_path / "missing.zip") == {}


class TestEndToEnd:
    def test_full_pipeline_with_xgboost(self, fast_config, splits):
        train, validation, test = splits

        result = ProgressiveTrainingOrchestrator(
            ranker=XGBoostRanker(fast_config),
            train=train,
            validation=validation,
            test=test,
            config=fast_config,
            model_store=ModelStore(),
        ).run()

        assert result.model_path == fast_config.model_path
        assert result.model_path.exists()
        assert result.training_rows == len(train) + len(validation) + len(test)
        assert result.transformer.num_training_rows == result.training_rows
        assert 0.0 <= result.test_metrics.ndcg_at(3) <= 1.0
        assert all(row.group_id == int(test.group_ids[0]) for row in result.top_results)
