"""Tests for ModelSettings and MeasureDefaults."""

import pytest
from pydantic import ValidationError

from infopt import InfiniteModel, MeasureDefaults, ModelSettings


class TestMeasureDefaults:
    """Tests for MeasureDefaults validation."""

    def test_defaults(self):
        """Should provide sampling with ten supports."""
        defaults = MeasureDefaults()
        assert defaults.eval_method == "sampling"
        assert defaults.num_supports == 10
        assert defaults.weight_function(0.3) == 1.0
        assert not defaults.use_existing_supports

    def test_invalid_eval_method(self):
        """Should reject unknown evaluation methods."""
        with pytest.raises(ValidationError):
            MeasureDefaults(eval_method="montecarlo")

    def test_invalid_num_supports(self):
        """Should reject non-positive support counts."""
        with pytest.raises(ValidationError, match="num_supports must be positive"):
            MeasureDefaults(num_supports=-1)

    def test_empty_name(self):
        """Should reject an empty name."""
        with pytest.raises(ValidationError):
            MeasureDefaults(name="")

    def test_custom_weight(self):
        """Should accept any callable weight function."""
        defaults = MeasureDefaults(weight_function=lambda x: 2 * x)
        assert defaults.weight_function(2) == 4


class TestModelSettings:
    """Tests for ModelSettings loading."""

    def test_from_dict(self):
        """Should build nested settings from a dictionary."""
        settings = ModelSettings.from_dict({
            "record_measure_supports": False,
            "measure_defaults": {"num_supports": 5},
        })
        assert not settings.record_measure_supports
        assert settings.measure_defaults.num_supports == 5
        assert settings.support_decimals == 12

    def test_from_dict_none(self):
        """Should fall back to defaults for empty input."""
        assert ModelSettings.from_dict(None) == ModelSettings()

    def test_extra_keys_rejected(self):
        """Should reject unknown settings."""
        with pytest.raises(ValidationError):
            ModelSettings.from_dict({"recording": True})

    def test_negative_decimals(self):
        """Should reject negative rounding precision."""
        with pytest.raises(ValidationError):
            ModelSettings(support_decimals=-1)

    def test_from_yaml(self, tmp_path):
        """Should load settings from a YAML file."""
        path = tmp_path / "model.yaml"
        path.write_text(
            "record_measure_supports: false\n"
            "support_decimals: 6\n"
            "measure_defaults:\n"
            "  eval_method: quadrature\n"
            "  num_supports: 20\n"
        )
        settings = ModelSettings.from_yaml(path)

        assert settings.support_decimals == 6
        assert settings.measure_defaults.eval_method == "quadrature"
        assert InfiniteModel(settings).integral_defaults()["num_supports"] == 20

    def test_from_empty_yaml(self, tmp_path):
        """Should treat an empty file as defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ModelSettings.from_yaml(path).record_measure_supports

    def test_from_yaml_not_mapping(self, tmp_path):
        """Should reject files that are not a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            ModelSettings.from_yaml(str(path))
